"""Test doubles: fake detector, aligner, generator, and an in-process R300 server."""

from __future__ import annotations

import base64
import secrets
from typing import TYPE_CHECKING, Annotated

import cv2
import numpy as np
from fastapi import FastAPI, Header, HTTPException, status

from face_r300.cloud.schemas import ExtractionRequest
from face_r300.core.types import R300_EMBEDDING_DIM, R300_VERSION, FaceRegion, FaceTemplate, Point

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

TEST_API_KEY = "test-secret-key"
TEST_SERVER_URL = "http://testserver/v1/templates"


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


def make_face(x: float, y: float, eye_distance: float = 20.0) -> FaceRegion:
    """Face centred at (x, y) with level eyes."""
    half = eye_distance / 2
    return FaceRegion(
        x=x - eye_distance,
        y=y - eye_distance,
        width=eye_distance * 2,
        height=eye_distance * 2,
        left_eye=Point(x - half, y),
        right_eye=Point(x + half, y),
    )


class FakeDetector:
    """Returns a fixed list of faces regardless of the image."""

    def __init__(self, faces: Sequence[FaceRegion]) -> None:
        self.faces = list(faces)
        self.limits: list[int] = []

    async def detect(self, image: NDArray[np.uint8], limit: int) -> list[FaceRegion]:
        self.limits.append(limit)
        return list(self.faces)


class TaggingAligner:
    """Produces a 112x112 image filled with the face's rounded eye-centre x coordinate."""

    def align(self, face: FaceRegion, image: NDArray[np.uint8]) -> NDArray[np.uint8]:
        tag = int(round(face.eye_centre.x)) % 256
        return np.full((112, 112, 3), tag, dtype=np.uint8)


class TaggingGenerator:
    """Encodes each image's fill value in the first element of an otherwise constant vector."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    async def generate(self, images: Sequence[NDArray[np.uint8]]) -> list[FaceTemplate]:
        self.calls.append(len(images))
        templates = []
        for image in images:
            data = np.full(R300_EMBEDDING_DIM, 2.0, dtype=np.float32)
            data[0] = float(image[0, 0, 0])
            templates.append(FaceTemplate(version=R300_VERSION, data=data))
        return templates


def sample_image(width: int = 320, height: int = 240) -> NDArray[np.uint8]:
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


# ---------------------------------------------------------------------------
# In-process R300 server
# ---------------------------------------------------------------------------


def create_r300_app(api_key: str = TEST_API_KEY) -> FastAPI:
    """A stand-in for the R300 template extraction service.

    Responds with one template per decoded JPEG. ``app.state.force_status``
    and ``app.state.force_body`` override the response for error tests.
    """
    app = FastAPI(title="R300 test server")
    app.state.force_status = None
    app.state.force_body = None
    app.state.requests = []

    @app.post("/v1/templates", response_model=None)
    async def extract_templates(
        body: ExtractionRequest,
        x_api_key: Annotated[str | None, Header()] = None,
    ) -> object:
        app.state.requests.append(body)
        if x_api_key is None or not secrets.compare_digest(x_api_key.encode(), api_key.encode()):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")
        if app.state.force_status is not None:
            raise HTTPException(status_code=app.state.force_status, detail="Forced failure")
        if app.state.force_body is not None:
            return app.state.force_body

        templates = []
        for index, encoded in enumerate(body.images):
            jpeg = np.frombuffer(base64.b64decode(encoded), dtype=np.uint8)
            image = cv2.imdecode(jpeg, cv2.IMREAD_COLOR)
            if image is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad image")
            vector = np.full(R300_EMBEDDING_DIM, 3.0)
            vector[0] = float(index + 1)
            templates.append({"version": R300_VERSION, "data": vector.tolist()})
        return templates

    return app

