"""Request bodies accepted by the editor API."""

from typing import Literal

from pydantic import Base64Bytes, BaseModel, Field


class AnalyzeRequest(BaseModel):
    """Photos of one dish, base64 encoded."""

    images: list[Base64Bytes] = Field(min_length=1)
    include_vitamins: bool = False
    prompt: str | None = None


class AmountUpdate(BaseModel):
    amount: float = Field(allow_inf_nan=False)


class SearchRequest(BaseModel):
    query: str


class AudioRequest(BaseModel):
    """Spoken description of a meal, base64 encoded."""

    audio: Base64Bytes
    format: Literal["aac", "wav", "mp3"] = "aac"
