"""On-device embedding generator running an ONNX face recognition model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import cv2
import numpy as np

from face_r300.core.types import FaceTemplate
from face_r300.ml.inference import InferencePool
from face_r300.ml.model_manager import OnnxModelManager

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from face_r300.config import Settings
    from face_r300.core.types import AlignedFaceImage
    from face_r300.ml.model_manager import ModelManager

logger = logging.getLogger(__name__)

INPUT_SIZE: tuple[int, int] = (112, 112)


def preprocess(image: AlignedFaceImage) -> NDArray[np.float32]:
    """Convert an aligned BGR face to a (1, 3, 112, 112) float32 tensor scaled to about [-1, 1]."""
    if image.shape[1] != INPUT_SIZE[0] or image.shape[0] != INPUT_SIZE[1]:
        image = cv2.resize(image, INPUT_SIZE, interpolation=cv2.INTER_LINEAR)
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB).astype(np.float32)
    rgb = (rgb - 127.5) / 128.0
    return np.transpose(rgb, (2, 0, 1))[None, ...].astype(np.float32)


class OnnxEmbeddingGenerator:
    """Generates raw templates with a locally loaded ONNX model.

    Inference runs inside an ``InferencePool`` so the event loop is never
    blocked. Templates are returned unnormalized; the pipeline normalizes them.
    """

    def __init__(
        self,
        settings: Settings,
        model_manager: ModelManager | None = None,
        pool: InferencePool | None = None,
    ) -> None:
        self._model_name = settings.face_recognition_model
        self._version = settings.template_version
        self._model_manager = model_manager if model_manager is not None else OnnxModelManager(settings)
        self._pool = pool if pool is not None else InferencePool(settings.max_concurrent)
        self._spec = self._model_manager.get_spec(self._model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def embedding_dim(self) -> int:
        return self._spec.embedding_dim

    async def generate(self, images: Sequence[AlignedFaceImage]) -> list[FaceTemplate]:
        if not images:
            return []
        vectors = await self._pool.run(self._embed_batch, list(images))
        logger.debug("Embedded %d faces with %s", len(vectors), self._model_name)
        return [FaceTemplate(version=self._version, data=vector) for vector in vectors]

    def _embed_batch(self, images: list[AlignedFaceImage]) -> list[NDArray[np.float32]]:
        self._model_manager.evict_idle()
        session = self._model_manager.get_session(self._model_name)
        input_name = session.get_inputs()[0].name
        output_name = session.get_outputs()[0].name
        vectors: list[NDArray[np.float32]] = []
        # Some exported models only accept a batch size of 1.
        for image in images:
            output = session.run([output_name], {input_name: preprocess(image)})[0]
            vectors.append(np.asarray(output, dtype=np.float32).reshape(-1))
        return vectors

    def shutdown(self) -> None:
        self._pool.shutdown()
        self._model_manager.shutdown()
