"""Embedding generator backed by the remote R300 face recognition service.

The service takes aligned face images and returns one R300 template per
image. Configuration is an API key and the endpoint URL, passed explicitly or
read from ``FACE_R300_API_KEY`` / ``FACE_R300_SERVER_URL`` via
``RemoteEmbeddingGenerator.from_settings``.
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

import httpx
import numpy as np
from pydantic import HttpUrl, TypeAdapter, ValidationError

from face_r300.cloud.schemas import ExtractionRequest, template_list_adapter
from face_r300.config import get_settings
from face_r300.core.types import FaceTemplate
from face_r300.errors import (
    FaceTemplateExtractionFailed,
    InvalidServerURLError,
    MissingAPIKeyError,
    MissingServerURLError,
)
from face_r300.imaging.encoding import encode_jpeg

if TYPE_CHECKING:
    from collections.abc import Sequence

    from face_r300.config import Settings
    from face_r300.core.types import AlignedFaceImage

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
JPEG_QUALITY = 100

_http_url_adapter: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


def _validate_url(url: str) -> httpx.URL:
    try:
        _http_url_adapter.validate_python(url)
    except ValidationError:
        raise InvalidServerURLError(url) from None
    return httpx.URL(url)


class RemoteEmbeddingGenerator:
    """Posts aligned faces to the R300 service and decodes the returned templates."""

    def __init__(
        self,
        api_key: str,
        url: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create a generator for the given service endpoint.

        Args:
            api_key: Key sent in the ``x-api-key`` header.
            url: Absolute http(s) URL of the template extraction endpoint.
            timeout: Request timeout in seconds when no client is supplied.
            client: Optional shared ``httpx.AsyncClient``. It is used as is and
                never closed by this object.

        Raises:
            MissingAPIKeyError: If ``api_key`` is empty.
            MissingServerURLError: If ``url`` is empty.
            InvalidServerURLError: If ``url`` is not an absolute http(s) URL.
        """
        if not api_key:
            raise MissingAPIKeyError
        if not url:
            raise MissingServerURLError
        self.url = _validate_url(url)
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> RemoteEmbeddingGenerator:
        """Create a generator from ``Settings`` (environment variables by default)."""
        if settings is None:
            settings = get_settings()
        if not settings.api_key:
            raise MissingAPIKeyError
        if not settings.server_url:
            raise MissingServerURLError
        return cls(settings.api_key, settings.server_url, timeout=settings.request_timeout, client=client)

    async def generate(self, images: Sequence[AlignedFaceImage]) -> list[FaceTemplate]:
        """Extract one R300 template per aligned image, in input order.

        Raises:
            ImageEncodingFailure: If an image cannot be encoded as JPEG.
            FaceTemplateExtractionFailed: If the service responds with status >= 400.
            pydantic.ValidationError: If the response body is not a list of templates.
            httpx.HTTPError: On transport failures.
        """
        body = self._request_body(images)
        logger.debug("Requesting %d templates from %s", len(images), self.url)

        if self._client is not None:
            response = await self._post(self._client, body)
        else:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                response = await self._post(client, body)

        if response.status_code >= 400:
            raise FaceTemplateExtractionFailed(
                f"Face template extraction failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        payloads = template_list_adapter.validate_json(response.content)
        logger.debug("Received %d templates", len(payloads))
        return [FaceTemplate(version=p.version, data=np.asarray(p.data, dtype=np.float32)) for p in payloads]

    @staticmethod
    def _request_body(images: Sequence[AlignedFaceImage]) -> str:
        encoded = [base64.b64encode(encode_jpeg(image, JPEG_QUALITY)).decode("ascii") for image in images]
        return ExtractionRequest(images=encoded).model_dump_json()

    async def _post(self, client: httpx.AsyncClient, body: str) -> httpx.Response:
        return await client.post(
            self.url,
            content=body,
            headers={
                API_KEY_HEADER: self._api_key,
                "Content-Type": "application/json",
            },
        )
