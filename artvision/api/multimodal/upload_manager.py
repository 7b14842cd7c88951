"""
Image-input preprocessing utilities for API adapters.

Architectural role:
- Turn uploaded or local files into validated `(filename, raw, mime_type)`
  triples that the studio session encodes as data-URIs.
- Enforce the picker-level image filter and upload size limit before encoding.
- Provide adapter-level preprocessing only (no endpoint registration).

Processing lifecycle:
1. Resolve file bytes (multipart upload or local path).
2. Determine the MIME type (declared type, Pillow sniffing, then extension).
3. Reject non-image or oversized payloads with `UploadError`.
4. Return `(filename, raw, mime_type)` for `StudioSession.select_file`.

Error handling strategy:
- Validation failures raise `UploadError` (a `ValueError`) for the adapter to
  translate into an HTTP 400 or a CLI message.

Side effects:
- Reads local files in `read_local_image`; never writes to disk.
"""

import io
import mimetypes
import os

from PIL import Image, UnidentifiedImageError

from artvision.config import MAX_UPLOAD_SIZE_BYTES


class UploadError(ValueError):
    """Raised when a file cannot be accepted as a source image."""


# ============================================================
# MIME DETECTION
# ============================================================

def sniff_image_mime_type(raw: bytes) -> str | None:
    """Detect an image MIME type from file content using Pillow."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    if not fmt:
        return None
    return Image.MIME.get(fmt.upper())


def resolve_mime_type(raw: bytes, filename: str, declared: str | None = None) -> str:
    """
    Pick the MIME type for an incoming image.

    Resolution order:
    - Declared `image/*` type (browser picker / multipart header).
    - Content sniffing with Pillow.
    - Extension-based guess.

    Raises `UploadError` when none of these yields an `image/*` type.
    """
    if declared and declared.lower().startswith("image/"):
        return declared.lower()

    sniffed = sniff_image_mime_type(raw)
    if sniffed:
        return sniffed

    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed and guessed.startswith("image/"):
        return guessed

    raise UploadError(f"Unsupported file type for {filename or 'upload'}; please select an image.")


# ============================================================
# INPUT RESOLUTION
# ============================================================

def validate_upload(raw: bytes, filename: str, declared: str | None = None) -> str:
    """Validate size/type of an upload and return its resolved MIME type."""
    if not raw:
        raise UploadError("Uploaded file is empty.")
    if len(raw) > MAX_UPLOAD_SIZE_BYTES:
        raise UploadError("File exceeds max size limit")
    return resolve_mime_type(raw, filename, declared)


def read_local_image(path: str) -> tuple[str, bytes, str]:
    """
    Read a local image file for CLI use.

    Returns:
    - `(filename, raw, mime_type)`.

    Raises `UploadError` for missing paths or non-image files.
    """
    expanded = os.path.realpath(os.path.expanduser(path))
    if not os.path.isfile(expanded):
        raise UploadError(f"File not found: {path}")

    with open(expanded, "rb") as f:
        raw = f.read()

    filename = os.path.basename(expanded)
    return filename, raw, validate_upload(raw, filename)
