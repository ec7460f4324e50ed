"""Re-detect faces and match them to the caller's faces by eye-centre distance."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from face_r300.errors import FaceDetectionFailure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from face_r300.core.protocols import FaceDetector
    from face_r300.core.types import FaceRegion, Image

logger = logging.getLogger(__name__)


def _nearest(face: FaceRegion, candidates: Sequence[FaceRegion]) -> int:
    target = face.eye_centre
    best_index = 0
    best_distance = candidates[0].eye_centre.distance_to(target)
    for index in range(1, len(candidates)):
        distance = candidates[index].eye_centre.distance_to(target)
        if distance < best_distance:
            best_index = index
            best_distance = distance
    return best_index


async def refine_faces(faces: Sequence[FaceRegion], image: Image, detector: FaceDetector) -> list[FaceRegion]:
    """Replace each face with the freshly detected face closest to it.

    The detector is asked for exactly ``len(faces)`` faces. Each original face
    is paired with the detection whose eye centre is nearest to its own; the
    first detection wins a tie.

    Raises:
        FaceDetectionFailure: If the detector returns a different number of
            faces than requested, or the refined list ends up a different size.
    """
    detected = await detector.detect(image, limit=len(faces))
    if len(detected) != len(faces):
        logger.debug("Re-detection found %d faces, expected %d", len(detected), len(faces))
        raise FaceDetectionFailure

    indices = [_nearest(face, detected) for face in faces]
    if len(set(indices)) != len(indices):
        logger.warning("Multiple faces were matched to the same re-detected face: %s", indices)

    refined = [detected[i] for i in indices]
    if len(refined) != len(faces):
        raise FaceDetectionFailure
    return refined
