"""Value types shared by the refiner, the pipeline, and the embedding backends."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

R300_VERSION: int = 300
R300_EMBEDDING_DIM: int = 512

# HxWx3 BGR uint8, the OpenCV convention.
Image: TypeAlias = "NDArray[np.uint8]"
AlignedFaceImage: TypeAlias = "NDArray[np.uint8]"


@dataclass(frozen=True)
class Point:
    """A 2D coordinate in image pixel space."""

    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class FaceRegion:
    """A detected face: bounding box plus named landmarks.

    Only the two eye centres are required. The nose tip and mouth corners are
    used for five-point alignment when the detector provides them.
    """

    x: float
    y: float
    width: float
    height: float
    left_eye: Point
    right_eye: Point
    nose_tip: Point | None = None
    mouth_left: Point | None = None
    mouth_right: Point | None = None
    quality: float = 0.0

    @property
    def eye_centre(self) -> Point:
        return Point(
            x=(self.left_eye.x + self.right_eye.x) * 0.5,
            y=(self.left_eye.y + self.right_eye.y) * 0.5,
        )

    def landmarks_5pt(self) -> NDArray[np.float32] | None:
        """Return [left eye, right eye, nose, left mouth, right mouth] as a (5, 2) array.

        Returns None unless all five landmarks are present.
        """
        if self.nose_tip is None or self.mouth_left is None or self.mouth_right is None:
            return None
        points = (self.left_eye, self.right_eye, self.nose_tip, self.mouth_left, self.mouth_right)
        return np.array([[p.x, p.y] for p in points], dtype=np.float32)


@dataclass(frozen=True, eq=False)
class FaceTemplate:
    """A versioned face embedding vector."""

    version: int
    data: NDArray[np.float32]

    def __len__(self) -> int:
        return int(self.data.shape[0])
