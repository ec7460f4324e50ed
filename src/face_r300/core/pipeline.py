"""R300 face template pipeline: refine -> align -> generate -> normalize."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import numpy as np

from face_r300.config import get_settings
from face_r300.core.refinement import refine_faces
from face_r300.core.templates import DEFAULT_THRESHOLD, compare, normalize
from face_r300.core.types import R300_VERSION, FaceTemplate
from face_r300.errors import FaceTemplateExtractionFailed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from face_r300.config import Settings
    from face_r300.core.protocols import EmbeddingGenerator, FaceAligner, FaceDetector
    from face_r300.core.types import AlignedFaceImage, FaceRegion, Image

logger = logging.getLogger(__name__)


class FaceTemplatePipeline:
    """Creates and compares normalized R300 face templates.

    The pipeline holds only its collaborators and read-only settings, so one
    instance can serve concurrent calls.
    """

    def __init__(
        self,
        detector: FaceDetector,
        aligner: FaceAligner,
        generator: EmbeddingGenerator,
        *,
        version: int = R300_VERSION,
        default_threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self._detector = detector
        self._aligner = aligner
        self._generator = generator
        self.version = version
        self.default_threshold = default_threshold

    @classmethod
    def from_settings(
        cls,
        detector: FaceDetector,
        aligner: FaceAligner,
        generator: EmbeddingGenerator,
        settings: Settings | None = None,
    ) -> FaceTemplatePipeline:
        """Create a pipeline whose default threshold comes from ``Settings`` (environment variables by default)."""
        if settings is None:
            settings = get_settings()
        return cls(detector, aligner, generator, default_threshold=settings.default_threshold)

    async def create_templates(self, faces: Sequence[FaceRegion], image: Image) -> list[FaceTemplate]:
        """Create one unit-length template per face, in the order of ``faces``.

        Raises:
            FaceDetectionFailure: If re-detection cannot match the faces one to one.
            FaceTemplateExtractionFailed: If the generator returns the wrong number of templates.
            Any error raised by the aligner or the embedding generator, unchanged.
        """
        refined = await refine_faces(faces, image, self._detector)
        aligned = [await self._align(face, image) for face in refined]

        raw_templates = await self._generator.generate(aligned)
        if len(raw_templates) != len(aligned):
            raise FaceTemplateExtractionFailed(
                f"Embedding backend returned {len(raw_templates)} templates for {len(aligned)} faces"
            )

        templates: list[FaceTemplate] = []
        for raw in raw_templates:
            data = np.array(raw.data, dtype=np.float32)
            normalize(data)
            templates.append(FaceTemplate(version=self.version, data=data))
        logger.debug("Created %d templates (version %d)", len(templates), self.version)
        return templates

    async def compare_templates(self, templates: Sequence[FaceTemplate], reference: FaceTemplate) -> list[float]:
        """Return the clamped cosine similarity of each template to the reference."""
        return compare(reference, templates)

    async def verify(self, reference: FaceTemplate, candidate: FaceTemplate, threshold: float | None = None) -> bool:
        """Return True if the candidate matches the reference at the given (or default) threshold."""
        if threshold is None:
            threshold = self.default_threshold
        return compare(reference, [candidate])[0] >= threshold

    async def _align(self, face: FaceRegion, image: Image) -> AlignedFaceImage:
        result = self._aligner.align(face, image)
        if inspect.isawaitable(result):
            return await result
        return result
