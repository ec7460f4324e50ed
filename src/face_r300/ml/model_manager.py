"""Local ONNX embedding models: registry, download, and session cache.

Models come from the Hugging Face Hub. A session that has not been used for
``Settings.model_ttl`` seconds is dropped the next time ``evict_idle`` runs;
``OnnxEmbeddingGenerator`` calls it before every batch. InsightFace weights
are only fetched when ``FACE_R300_ACCEPT_INSIGHTFACE_LICENSE`` is set.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from huggingface_hub import hf_hub_download
from onnxruntime import GraphOptimizationLevel, InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

if TYPE_CHECKING:
    from face_r300.config import Settings

logger = logging.getLogger(__name__)

Provider = str | tuple[str, dict[str, object]]


@dataclass(frozen=True)
class EmbeddingModelSpec:
    """Where to fetch a 112x112 face embedding model and what it produces."""

    name: str
    repo_id: str
    filename: str
    subfolder: str | None
    license: str
    insightface: bool
    embedding_dim: int = 512


MODEL_REGISTRY: dict[str, EmbeddingModelSpec] = {
    spec.name: spec
    for spec in (
        EmbeddingModelSpec(
            name="auraface_v1",
            repo_id="fal/AuraFace-v1",
            filename="glintr100.onnx",
            subfolder=None,
            license="Apache-2.0",
            insightface=False,
        ),
        EmbeddingModelSpec(
            name="w600k_r50",
            repo_id="public-data/insightface",
            filename="w600k_r50.onnx",
            subfolder="models/buffalo_l",
            license="Non-commercial (InsightFace)",
            insightface=True,
        ),
    )
}


def lookup_model(model_name: str) -> EmbeddingModelSpec:
    try:
        return MODEL_REGISTRY[model_name]
    except KeyError:
        raise KeyError(f"Unknown model: {model_name} (known: {', '.join(sorted(MODEL_REGISTRY))})") from None


def execution_providers(settings: Settings) -> list[Provider]:
    """ONNX Runtime providers for the configured device, CPU always last."""
    if settings.device == "cuda":
        cuda_options: dict[str, object] = {
            "device_id": 0,
            "gpu_mem_limit": settings.gpu_mem_limit,
            "arena_extend_strategy": "kSameAsRequested",
        }
        return [("CUDAExecutionProvider", cuda_options), "CPUExecutionProvider"]
    if settings.device == "openvino":
        return [("OpenVINOExecutionProvider", {"device_type": "CPU"}), "CPUExecutionProvider"]
    return ["CPUExecutionProvider"]


def session_options(settings: Settings) -> SessionOptions:
    opts = SessionOptions()
    opts.intra_op_num_threads = settings.intra_op_threads
    opts.inter_op_num_threads = settings.inter_op_threads
    opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
    if settings.device == "openvino":
        # OpenVINO does its own graph optimization
        opts.graph_optimization_level = GraphOptimizationLevel.ORT_DISABLE_ALL
    return opts


class ModelManager(Protocol):
    """What ``OnnxEmbeddingGenerator`` needs from a model store."""

    def get_spec(self, model_name: str) -> EmbeddingModelSpec: ...

    def get_session(self, model_name: str) -> InferenceSession: ...

    def evict_idle(self) -> list[str]:
        """Drop sessions idle longer than the TTL and return their model names."""
        ...

    def shutdown(self) -> None: ...


@dataclass
class _Entry:
    session: InferenceSession
    last_used: float


class OnnxModelManager:
    """Thread-safe session cache over models downloaded to ``Settings.models_dir``."""

    def __init__(self, settings: Settings) -> None:
        self._models_dir = Path(settings.models_dir)
        self._models_dir.mkdir(parents=True, exist_ok=True)
        self._ttl = settings.model_ttl
        self._accept_insightface = settings.accept_insightface_license
        self._providers = execution_providers(settings)
        self._options = session_options(settings)

        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._paths: dict[str, Path] = {}

    def get_spec(self, model_name: str) -> EmbeddingModelSpec:
        return lookup_model(model_name)

    def model_path(self, model_name: str) -> Path:
        """Local path of the model file, downloading it on first use."""
        spec = lookup_model(model_name)
        if spec.insightface and not self._accept_insightface:
            raise RuntimeError(f"Model '{spec.name}' requires FACE_R300_ACCEPT_INSIGHTFACE_LICENSE=true")

        path = self._paths.get(model_name)
        if path is None or not path.exists():
            path = Path(
                hf_hub_download(
                    repo_id=spec.repo_id,
                    filename=spec.filename,
                    subfolder=spec.subfolder,
                    local_dir=str(self._models_dir),
                )
            )
            self._paths[model_name] = path
            logger.info("Downloaded %s to %s", model_name, path)
        return path

    def get_session(self, model_name: str) -> InferenceSession:
        """Return the cached session for a model, loading it if needed."""
        with self._lock:
            entry = self._entries.get(model_name)
            if entry is None:
                session = InferenceSession(
                    str(self.model_path(model_name)),
                    sess_options=self._options,
                    providers=self._providers,
                )
                entry = _Entry(session=session, last_used=0.0)
                self._entries[model_name] = entry
                logger.info("Loaded session for %s", model_name)
            entry.last_used = time.monotonic()
            return entry.session

    def evict_idle(self) -> list[str]:
        if self._ttl == 0:
            return []
        cutoff = time.monotonic() - self._ttl
        with self._lock:
            idle = [name for name, entry in self._entries.items() if entry.last_used < cutoff]
            for name in idle:
                del self._entries[name]
        for name in idle:
            logger.info("Evicted idle session for %s", name)
        return idle

    def shutdown(self) -> None:
        with self._lock:
            self._entries.clear()
