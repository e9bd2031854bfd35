"""Pydantic request models for the HTTP API."""

from pydantic import BaseModel, Field, model_validator

from nutri_coach.services.detection import REMOTE_IMAGE_PREFIXES


class ImageRequest(BaseModel):
    """Image supplied inline as base64 or by URI.

    Only remote URIs are accepted here; local paths are for in-process callers.
    """

    image_base64: str | None = None
    image_uri: str | None = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "ImageRequest":
        if bool(self.image_base64) == bool(self.image_uri):
            raise ValueError("Provide exactly one of image_base64 or image_uri")
        if self.image_uri and not self.image_uri.startswith(REMOTE_IMAGE_PREFIXES):
            raise ValueError("image_uri must be an http, https or gs URI")
        return self


class ScanRequest(ImageRequest):
    """Image scan with an optional event key for superseding retakes."""

    event_key: str = "default"


class ResolveRequest(BaseModel):
    """Food label to resolve."""

    label: str = Field(min_length=1)


class AnalyzeRequest(BaseModel):
    """Label to analyze, optionally with nutrition already resolved."""

    label: str = Field(min_length=1)
    nutrition: dict[str, object] | None = None
    log: bool = False
    image_uri: str | None = None


class CoachMessageRequest(BaseModel):
    """Free-form coach message."""

    text: str
    type: str = Field(default="text", pattern="^(text|voice)$")


class ScannedFoodRequest(BaseModel):
    """Scanned food to discuss with the coach."""

    label: str = Field(min_length=1)
    nutrition: dict[str, object] | None = None
    image_uri: str | None = None
