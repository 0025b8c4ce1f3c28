"""Helpers for in-memory item images and data URIs."""

import base64
from dataclasses import dataclass
from typing import Optional, Tuple

from virtual_stylist.core.errors import DecodeError

DEFAULT_UPLOAD_MEDIA_TYPE = "image/jpeg"
DEFAULT_GENERATED_MEDIA_TYPE = "image/png"
UPLOAD_HINT = "PNG, JPG or WebP up to 10MB"


def build_data_uri(b64_data: str, media_type: str = DEFAULT_GENERATED_MEDIA_TYPE) -> str:
    """Wrap raw base64 content in a displayable data URI."""
    return f"data:{media_type};base64,{b64_data}"


def split_data_uri(
    reference: str, default_media_type: str = DEFAULT_GENERATED_MEDIA_TYPE
) -> Tuple[str, str]:
    """Return ``(media_type, base64_payload)`` for a data URI or a bare base64 string."""

    cleaned = reference.strip()
    if cleaned.startswith("data:") and "," in cleaned:
        header, payload = cleaned.split(",", 1)
        media_type = header[len("data:") :].split(";", 1)[0] or default_media_type
        return media_type, payload
    if "," in cleaned:
        return default_media_type, cleaned.split(",", 1)[1]
    return default_media_type, cleaned


@dataclass(frozen=True)
class ItemImage:
    """The uploaded clothing photo, held only in memory."""

    data: bytes
    media_type: str = DEFAULT_UPLOAD_MEDIA_TYPE

    @classmethod
    def from_upload(cls, data: Optional[bytes], media_type: Optional[str]) -> "ItemImage":
        if not data:
            raise DecodeError("Uploaded file is empty or could not be read")
        return cls(data=bytes(data), media_type=media_type or DEFAULT_UPLOAD_MEDIA_TYPE)

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    @property
    def data_uri(self) -> str:
        return build_data_uri(self.b64, self.media_type)


__all__ = [
    "DEFAULT_UPLOAD_MEDIA_TYPE",
    "DEFAULT_GENERATED_MEDIA_TYPE",
    "UPLOAD_HINT",
    "ItemImage",
    "build_data_uri",
    "split_data_uri",
]
