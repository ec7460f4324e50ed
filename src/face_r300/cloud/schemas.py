"""Pydantic request/response schemas for the R300 face recognition service."""

from __future__ import annotations

from pydantic import BaseModel, Field, TypeAdapter


class ExtractionRequest(BaseModel):
    """Request body: aligned face images as base64-encoded JPEG, in order."""

    images: list[str] = Field(description="Base64-encoded JPEG images of aligned faces")


class FaceTemplatePayload(BaseModel):
    """A single face template returned by the service."""

    version: int = Field(description="Face template version identifier (300 for R300)")
    data: list[float] = Field(min_length=1, description="Embedding vector (512 dimensions for R300)")


template_list_adapter: TypeAdapter[list[FaceTemplatePayload]] = TypeAdapter(list[FaceTemplatePayload])
