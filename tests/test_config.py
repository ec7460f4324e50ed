"""Tests for environment-based settings."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from face_r300.config import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.api_key is None
        assert settings.server_url is None
        assert settings.default_threshold == 0.6
        assert settings.device == "cpu"
        assert settings.face_recognition_model == "auraface_v1"
        assert settings.template_version == 300

    def test_reads_prefixed_environment(self) -> None:
        env = {
            "FACE_R300_API_KEY": "abc",
            "FACE_R300_SERVER_URL": "https://r300.example.com",
            "FACE_R300_DEFAULT_THRESHOLD": "0.45",
            "FACE_R300_DEVICE": "cuda",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = get_settings()
        assert settings.api_key == "abc"
        assert settings.server_url == "https://r300.example.com"
        assert settings.default_threshold == 0.45
        assert settings.device == "cuda"

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("FACE_R300_DEFAULT_THRESHOLD", "1.5"),
            ("FACE_R300_REQUEST_TIMEOUT", "0"),
            ("FACE_R300_DEVICE", "tpu"),
            ("FACE_R300_MAX_CONCURRENT", "0"),
        ],
    )
    def test_rejects_invalid_values(self, name: str, value: str) -> None:
        with patch.dict(os.environ, {name: value}, clear=True), pytest.raises(ValidationError):
            Settings()
