"""Studio orchestration: one user's image, prompt, result, and lifecycle status.

Architectural role:
    Provides the state holder driven by the HTTP and CLI adapters. Each user action
    (select file, load example, set prompt, generate, clear, download) maps to one
    method; adapters render `snapshot()` after every call.

Control-flow model:
    1. `select_file` / `load_example` encode a source image as a data-URI.
    2. `generate` validates preconditions, marks the session as processing, and
       awaits the injected client in a worker thread.
    3. The result (or failure message) is stored and the status settles.

State model:
    Status is a single variant (`Idle | Loading | Complete | Failed`) from
    `state_types`; `state` derives the rendered `ProcessingState`.

Cancellation:
    Every in-flight call captures the session epoch. `clear` and `select_file`
    advance the epoch, so a response for a superseded epoch is logged and
    discarded instead of overwriting newer state.

Error handling strategy:
    Precondition and remote failures become `Failed(message)`; they never raise
    to the adapter. Only misuse (`SessionBusyError`, `NoResultError`) raises.

Determinism:
    Local transitions are deterministic for a fixed client; the generated image is
    not.
"""

import asyncio
import binascii
import logging
from typing import Any, Callable, Protocol

from artvision.config import DEFAULT_PROMPT, DOWNLOAD_FILENAME
from artvision.core.state_types import (
    Complete,
    Failed,
    GeneratedImage,
    Idle,
    LoadKind,
    Loading,
    ProcessingState,
    SourceImage,
    Status,
)
from artvision.image.encoding import decode_data_uri, to_data_uri
from artvision.image.service import fetch_example_image


logger = logging.getLogger(__name__)

MISSING_IMAGE_ERROR = "Please upload an image first."
MISSING_PROMPT_ERROR = "Please enter a prompt."
EXAMPLE_LOAD_ERROR = "Failed to load example image. Please upload one manually."
GENERATION_FALLBACK_ERROR = "Failed to process image. Please try again."


class ImageClientProtocol(Protocol):
    """Minimal interface required from a generation client."""

    def generate_edited_image(
        self, image_base64: str, mime_type: str, prompt: str
    ) -> GeneratedImage:
        ...


ExampleFetcher = Callable[[], tuple[str, bytes, str]]


class SessionBusyError(RuntimeError):
    """Raised when an action is triggered while another call is in flight."""


class NoResultError(RuntimeError):
    """Raised when no decodable generated image is available for download."""


class StudioSession:
    """In-memory orchestrator for a single user of the studio."""

    def __init__(
        self,
        client: ImageClientProtocol,
        example_fetcher: ExampleFetcher = fetch_example_image,
        default_prompt: str = DEFAULT_PROMPT,
    ):
        self.client = client
        self.example_fetcher = example_fetcher
        self.default_prompt = default_prompt

        self.prompt = default_prompt
        self.source_image: SourceImage | None = None
        self.result: GeneratedImage | None = None
        self.status: Status = Idle()
        self._epoch = 0

    # =========================================================
    # DERIVED STATE
    # =========================================================

    @property
    def state(self) -> ProcessingState:
        return ProcessingState.from_status(self.status)

    @property
    def is_busy(self) -> bool:
        return isinstance(self.status, Loading)

    def _ensure_idle(self) -> None:
        if self.is_busy:
            raise SessionBusyError("A request is already in progress.")

    # =========================================================
    # USER ACTIONS
    # =========================================================

    def select_file(self, filename: str, raw: bytes, mime_type: str) -> SourceImage:
        """Store a new source image, dropping any prior result and error.

        Advances the epoch so responses for the previous image are discarded.
        """
        self._epoch += 1
        self.source_image = SourceImage(
            filename=filename,
            raw=raw,
            mime_type=mime_type,
            data_uri=to_data_uri(raw, mime_type),
        )
        self.result = None
        self.status = Idle()
        logger.info("Source image selected: %s (%s, %d bytes)", filename, mime_type, len(raw))
        return self.source_image

    def set_prompt(self, prompt: str) -> None:
        self.prompt = prompt

    async def load_example(self) -> ProcessingState:
        """Fetch the example photo and treat it like an upload.

        Transitions:
            idle -> uploading -> idle, with `error` set when the fetch fails.
        """
        self._ensure_idle()
        epoch = self._epoch
        self.status = Loading(LoadKind.UPLOADING)

        try:
            filename, raw, mime_type = await asyncio.to_thread(self.example_fetcher)
        except Exception:
            logger.exception("Failed to load example")
            if epoch == self._epoch:
                self.status = Failed(EXAMPLE_LOAD_ERROR)
            return self.state

        if epoch != self._epoch:
            logger.info("Discarding example image for superseded session state")
            return self.state

        self.select_file(filename, raw, mime_type)
        return self.state

    async def generate(self, prompt: str | None = None) -> ProcessingState:
        """Run one generation for the current image and prompt.

        Args:
            prompt: Optional replacement for the stored prompt.

        Returns:
            Settled `ProcessingState`.

        Transitions:
            - Missing image/prompt -> `Failed`, client not called.
            - idle -> processing -> complete on success.
            - idle -> processing -> idle with `error` on failure; prior result kept.
        """
        self._ensure_idle()
        if prompt is not None:
            self.prompt = prompt

        if self.source_image is None:
            self.status = Failed(MISSING_IMAGE_ERROR)
            return self.state
        if not self.prompt or not self.prompt.strip():
            self.status = Failed(MISSING_PROMPT_ERROR)
            return self.state

        source = self.source_image
        epoch = self._epoch
        self.status = Loading(LoadKind.PROCESSING)

        try:
            result = await asyncio.to_thread(
                self.client.generate_edited_image,
                source.data_uri,
                source.mime_type,
                self.prompt,
            )
        except Exception as err:
            if epoch != self._epoch:
                logger.info("Discarding failure for superseded generation: %s", err)
                return self.state
            logger.warning("Generation failed: %s", err)
            self.status = Failed(str(err) or GENERATION_FALLBACK_ERROR)
            return self.state

        if epoch != self._epoch:
            logger.info("Discarding result for superseded generation")
            return self.state

        self.result = result
        self.status = Complete(result)
        return self.state

    def clear(self) -> None:
        """Reset image, result, prompt, and error; invalidate in-flight calls."""
        self._epoch += 1
        self.source_image = None
        self.result = None
        self.prompt = self.default_prompt
        self.status = Idle()

    def download(self) -> tuple[str, bytes, str]:
        """Return `(filename, raw, mime_type)` for the generated image."""
        if self.result is None:
            raise NoResultError("No generated image to download.")
        try:
            raw = decode_data_uri(self.result.url)
        except (binascii.Error, ValueError) as err:
            logger.error("Generated image is not valid base64: %s", err)
            raise NoResultError("Generated image data is corrupt.") from err
        return DOWNLOAD_FILENAME, raw, self.result.mime_type

    # =========================================================
    # RENDERING
    # =========================================================

    def snapshot(self) -> dict[str, Any]:
        """Render session state as a JSON-ready dictionary."""
        state = self.state
        source = None
        if self.source_image is not None:
            source = {
                "filename": self.source_image.filename,
                "mime_type": self.source_image.mime_type,
                "preview_url": self.source_image.preview_url,
            }
        result = None
        if self.result is not None:
            result = {"url": self.result.url, "mime_type": self.result.mime_type}

        return {
            "prompt": self.prompt,
            "stage": state.stage.value,
            "is_loading": state.is_loading,
            "error": state.error,
            "source_image": source,
            "result": result,
        }
