"""ArcFace-style face alignment.

Warps a face into the 112x112 canonical crop the R300 embedding expects,
using a similarity transform (rotation, uniform scale, translation) fitted
to the face landmarks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from face_r300.errors import FaceAlignmentFailure

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from face_r300.core.types import AlignedFaceImage, FaceRegion, Image

# InsightFace 112x112 template: left eye, right eye, nose, left mouth, right mouth.
ARCFACE_TEMPLATE_112: NDArray[np.float32] = np.array(
    [
        [38.2946, 51.6963],
        [73.5318, 51.5014],
        [56.0252, 71.7366],
        [41.5493, 92.3655],
        [70.7299, 92.2041],
    ],
    dtype=np.float32,
)


def estimate_similarity_transform(src: NDArray[np.floating], dst: NDArray[np.floating]) -> NDArray[np.float32]:
    """Least-squares similarity transform mapping ``src`` points onto ``dst`` (Umeyama).

    Returns a 2x3 affine matrix suitable for ``cv2.warpAffine``.

    Raises:
        FaceAlignmentFailure: If the source points coincide.
    """
    src = np.asarray(src, dtype=np.float64)
    dst = np.asarray(dst, dtype=np.float64)
    count = src.shape[0]

    src_mean = src.mean(axis=0)
    dst_mean = dst.mean(axis=0)
    src_centered = src - src_mean
    dst_centered = dst - dst_mean

    src_var = float((src_centered**2).sum() / count)
    if src_var <= 1e-12:
        raise FaceAlignmentFailure("Face landmarks are degenerate")

    cov = dst_centered.T @ src_centered / count
    u, s, vt = np.linalg.svd(cov)
    d = np.ones(2)
    if np.linalg.det(u) * np.linalg.det(vt) < 0:
        d[-1] = -1.0
    rotation = u @ np.diag(d) @ vt
    scale = float((s * d).sum() / src_var)
    translation = dst_mean - scale * (rotation @ src_mean)

    matrix = np.empty((2, 3), dtype=np.float32)
    matrix[:, :2] = scale * rotation
    matrix[:, 2] = translation
    return matrix


class ArcFaceAligner:
    """Aligns faces to the ArcFace template.

    Uses all five landmarks when the face has them, otherwise the eye pair.
    """

    def __init__(self, out_size: tuple[int, int] = (112, 112)) -> None:
        self.out_size = (int(out_size[0]), int(out_size[1]))
        sx = self.out_size[0] / 112.0
        sy = self.out_size[1] / 112.0
        self._template = ARCFACE_TEMPLATE_112 * np.array([sx, sy], dtype=np.float32)

    def transform_for(self, face: FaceRegion) -> NDArray[np.float32]:
        """Return the 2x3 matrix that maps image coordinates to the aligned crop."""
        landmarks = face.landmarks_5pt()
        if landmarks is not None:
            return estimate_similarity_transform(landmarks, self._template)
        eyes = np.array(
            [[face.left_eye.x, face.left_eye.y], [face.right_eye.x, face.right_eye.y]],
            dtype=np.float32,
        )
        return estimate_similarity_transform(eyes, self._template[:2])

    def align(self, face: FaceRegion, image: Image) -> AlignedFaceImage:
        matrix = self.transform_for(face)
        aligned = cv2.warpAffine(
            image,
            matrix,
            self.out_size,
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0),
        )
        return np.asarray(aligned, dtype=np.uint8)
