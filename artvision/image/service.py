"""Image service helpers used by the studio orchestrator and adapters.

Role in pipeline:
    - Builds a configured `GeminiImageClient` for adapters that do not inject one.
    - Fetches the example photo that first-time users can try.

Error handling strategy:
    - Client construction never fails; a missing key surfaces at generation time.
    - Example download failures are logged and re-raised as `ExampleImageError`.

Performance characteristics:
    - Synchronous `requests` calls; async callers wrap them in `asyncio.to_thread`.
"""

import logging

import requests

from artvision.config import (
    EXAMPLE_IMAGE_FILENAME,
    EXAMPLE_IMAGE_MIME_TYPE,
    EXAMPLE_IMAGE_URL,
    GEMINI_KEY_FILE,
    IMAGE_MODEL_NAME,
    REQUEST_TIMEOUT,
    load_key,
)
from artvision.image.client import GeminiImageClient


logger = logging.getLogger(__name__)


class ExampleImageError(RuntimeError):
    """Raised when the example photo cannot be downloaded."""


def create_client(model: str = IMAGE_MODEL_NAME) -> GeminiImageClient:
    """Build a client from environment/key-file configuration."""
    return GeminiImageClient(api_key=load_key(GEMINI_KEY_FILE), model=model)


def fetch_example_image(
    url: str = EXAMPLE_IMAGE_URL,
    timeout: float = REQUEST_TIMEOUT,
) -> tuple[str, bytes, str]:
    """Download the example photo.

    Returns:
        `(filename, raw, mime_type)`; the photo is always labelled
        `example_portrait.jpg` / `image/jpeg`, like a user upload.

    Failure handling:
        - Transport/status failures and empty bodies -> `ExampleImageError`.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as err:
        logger.exception("Failed to load example image from %s", url)
        raise ExampleImageError(str(err)) from err

    if not response.content:
        raise ExampleImageError("Example image response was empty.")

    return EXAMPLE_IMAGE_FILENAME, response.content, EXAMPLE_IMAGE_MIME_TYPE
