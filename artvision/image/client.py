"""Gemini image-editing HTTP client.

Processing flow:
    1. Strip any data-URI prefix from the source image payload.
    2. Build one `generateContent` request: prompt text part, then inline image.
    3. Submit JSON payload to the configured model endpoint.
    4. Parse the first inline image part into a `GeneratedImage`.

Response policy:
    - Only the first inline image part is used; later parts are ignored.
    - A text-only answer is surfaced as a model explanation/refusal.
    - Neither image nor text -> generic "no image data" failure.

Retry behavior:
    No retry loop is implemented. Each call is attempted once with the configured
    timeout.

Error handling strategy:
    Every failure (missing key, transport, HTTP status, response shape) is logged
    and re-raised as `ImageGenerationError` carrying one human-readable message.

Determinism:
    Request assembly is deterministic for fixed inputs/configuration. The returned
    image is provider dependent.
"""

import base64
import binascii
import logging

import requests

from artvision.config import GEMINI_URL_TEMPLATE, IMAGE_MODEL_NAME, REQUEST_TIMEOUT
from artvision.core.state_types import GeneratedImage
from artvision.image.encoding import strip_data_uri_prefix


logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/png"
TEXT_PREVIEW_CHARS = 100
FALLBACK_ERROR = "Failed to generate image"


class ImageGenerationError(RuntimeError):
    """Raised when the remote model call does not yield an image."""


def build_payload(image_base64: str, mime_type: str, prompt: str) -> dict:
    """Build the `generateContent` request body for one image edit."""
    return {
        "contents": {
            "parts": [
                {"text": prompt},
                {
                    "inlineData": {
                        "mimeType": mime_type,
                        "data": strip_data_uri_prefix(image_base64),
                    }
                },
            ]
        }
    }


def _is_base64(payload) -> bool:
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, TypeError, ValueError):
        return False
    return True


def parse_response(data: dict) -> GeneratedImage:
    """Extract the first generated image from a `generateContent` response.

    Args:
        data: Decoded JSON response body.

    Returns:
        `GeneratedImage` whose url is a `data:` URI.

    Error handling:
        - No candidate parts -> "No content generated".
        - Text but no image -> model explanation, truncated to 100 characters.
        - Neither, or an image payload that is not valid base64 ->
          "No image data found in response".
    """
    candidates = data.get("candidates") or []
    content = (candidates[0] or {}).get("content") if candidates else None
    parts = (content or {}).get("parts")
    if not parts:
        raise ImageGenerationError("No content generated")

    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            if not _is_base64(inline["data"]):
                raise ImageGenerationError("No image data found in response")
            mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_IMAGE_MIME_TYPE
            return GeneratedImage(
                url=f"data:{mime_type};base64,{inline['data']}",
                mime_type=mime_type,
            )

    # Only one image per response is supported; text means the model declined.
    text = next((part["text"] for part in parts if part.get("text")), None)
    if text:
        raise ImageGenerationError(
            f'The model returned text instead of an image: "{text[:TEXT_PREVIEW_CHARS]}..."'
        )
    raise ImageGenerationError("No image data found in response")


def _describe_http_error(err: requests.exceptions.RequestException) -> str:
    """Prefer the provider's `error.message`, then the exception text."""
    response = getattr(err, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = (body.get("error") or {}).get("message")
            if message:
                return str(message)
    return str(err) or FALLBACK_ERROR


class GeminiImageClient:
    """Single-call client for the Gemini image model.

    The client is constructed explicitly and handed to `StudioSession`; tests
    substitute any object exposing `generate_edited_image`.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = IMAGE_MODEL_NAME,
        url_template: str = GEMINI_URL_TEMPLATE,
        timeout: float = REQUEST_TIMEOUT,
        http: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url_template.format(model=model)
        self.timeout = timeout
        self.http = http or requests.Session()

    def generate_edited_image(
        self,
        image_base64: str,
        mime_type: str,
        prompt: str,
    ) -> GeneratedImage:
        """Send the image and prompt to the model and return the edited image.

        Args:
            image_base64: Bare base64 payload or full data-URI.
            mime_type: MIME type of the source image.
            prompt: Instruction text.

        Returns:
            `GeneratedImage` for the first inline image part.

        Raises:
            ImageGenerationError: For any failure, with a user-facing message.
        """
        try:
            if not self.api_key:
                raise ImageGenerationError(
                    "Gemini API key missing: set GEMINI_API_KEY or config/gemini.key"
                )

            headers = {
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            }

            response = self.http.post(
                self.url,
                headers=headers,
                json=build_payload(image_base64, mime_type, prompt),
                timeout=self.timeout,
            )
            response.raise_for_status()

            return parse_response(response.json())

        except ImageGenerationError as err:
            logger.error("Gemini generation error: %s", err)
            raise

        except requests.exceptions.RequestException as err:
            logger.exception("Gemini request failed")
            raise ImageGenerationError(_describe_http_error(err)) from err

        except Exception as err:
            logger.exception("Gemini generation error")
            raise ImageGenerationError(str(err) or FALLBACK_ERROR) from err
