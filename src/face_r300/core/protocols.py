"""Capabilities the template pipeline consumes.

Face detection is always external. Alignment and embedding generation have
concrete implementations in this package (``ArcFaceAligner``,
``RemoteEmbeddingGenerator``, ``OnnxEmbeddingGenerator``) but any object with
the right shape can be injected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Awaitable, Sequence

    from face_r300.core.types import AlignedFaceImage, FaceRegion, FaceTemplate, Image


class FaceDetector(Protocol):
    """Protocol for face detectors."""

    async def detect(self, image: Image, limit: int) -> list[FaceRegion]:
        """Detect up to ``limit`` faces in an image.

        Args:
            image: HxWx3 BGR uint8 array.
            limit: Maximum number of faces to return.

        Returns:
            Detected faces with at least both eye landmarks set.
        """
        ...


class FaceAligner(Protocol):
    """Protocol for face alignment. May be synchronous or asynchronous."""

    def align(self, face: FaceRegion, image: Image) -> AlignedFaceImage | Awaitable[AlignedFaceImage]:
        """Crop, rotate, and scale a face into the canonical embedding input."""
        ...


class EmbeddingGenerator(Protocol):
    """Protocol for embedding backends (remote service, on-device model, test double)."""

    async def generate(self, images: Sequence[AlignedFaceImage]) -> list[FaceTemplate]:
        """Generate one raw template per aligned face image.

        Implementations must return templates in the same order as ``images``.
        """
        ...
