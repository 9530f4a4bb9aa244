# facematch/schemas.py
import base64
import binascii
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator

from .errors import ValidationError


def decode_portrait(data: str) -> bytes:
    """
    Decode a portrait sent as raw base64 or as a data URL (data:image/png;base64,...).
    """
    s = (data or "").strip()
    # if data URL present, strip header
    if s.startswith("data:"):
        comma = s.find(",")
        if comma != -1:
            s = s[comma + 1:]
    # sanitize whitespace/newlines
    s = "".join(s.split())
    if not s:
        raise ValidationError("Missing required field: portrait.")
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Portrait is not valid base64: {e}")


_MAGIC = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]


def sniff_mime(data: bytes) -> str:
    for magic, mime in _MAGIC:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


def encode_portrait(data: bytes) -> str:
    return f"data:{sniff_mime(data)};base64," + base64.b64encode(data).decode("utf-8")


class _DescriptorIn(BaseModel):
    embedding: Optional[List[float]] = None
    samples: Optional[List[Optional[List[float]]]] = None

    @model_validator(mode="after")
    def _one_descriptor(self):
        if self.embedding is None and self.samples is None:
            raise ValueError("Missing required field: embedding.")
        if self.embedding is not None and self.samples is not None:
            raise ValueError("Send either embedding or samples, not both.")
        return self


class EnrollRequest(_DescriptorIn):
    name: str = Field(..., min_length=1)
    portrait: str = Field(..., min_length=1, validation_alias=AliasChoices("portrait", "image"))


class MatchRequest(_DescriptorIn):
    pass


class AutoMatchRequest(BaseModel):
    embedding: List[float]
    session: Optional[str] = Field(default=None, max_length=128)


class EnrollResponse(BaseModel):
    message: str
    id: int


class MatchResponse(BaseModel):
    matchFound: bool
    name: Optional[str] = None
    similarity: Optional[float] = None
    portrait: Optional[str] = None
    message: Optional[str] = None
