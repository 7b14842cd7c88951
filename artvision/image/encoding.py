"""Data-URI helpers shared by the generation client and the studio session."""

import base64
import re


_DATA_URI_PREFIX = re.compile(r"^data:[^;,]*(;[^;,]*)*;base64,", re.IGNORECASE)


def to_data_uri(raw: bytes, mime_type: str) -> str:
    """Encode raw bytes as `data:<mime>;base64,<payload>`."""
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def strip_data_uri_prefix(image_data: str) -> str:
    """Return the bare base64 payload, dropping any data-URI prefix."""
    return _DATA_URI_PREFIX.sub("", image_data, count=1)


def decode_data_uri(data_uri: str) -> bytes:
    """Decode a data-URI (or bare base64 string) back to bytes."""
    return base64.b64decode(strip_data_uri_prefix(data_uri))
