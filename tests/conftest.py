"""Shared fixtures for the R300 test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from fakes import create_r300_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


@pytest.fixture()
def r300_app() -> FastAPI:
    """A fresh in-process R300 server."""
    return create_r300_app()


@pytest.fixture()
async def r300_http_client(r300_app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Async HTTP client routed to the in-process R300 server."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=r300_app)) as client:
        yield client
