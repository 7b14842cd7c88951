"""State contracts shared by the studio orchestrator and its adapters.

Architectural role:
    Defines the image records held by `artvision.core.session.StudioSession` and
    the status variant that drives the four-stage UI lifecycle.

State model:
    The stored state is a single tagged variant (`Idle`, `Loading`, `Complete`,
    `Failed`). The rendered `ProcessingState` (`is_loading`, `error`, `stage`) is
    derived from it, so loading flags and stage markers cannot disagree.

Determinism:
    Purely structural and state-free.
"""

from dataclasses import dataclass
from enum import Enum


class Stage(str, Enum):
    """Four-valued UI lifecycle marker."""

    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETE = "complete"


class LoadKind(str, Enum):
    """What an in-flight `Loading` status is waiting on."""

    UPLOADING = "uploading"
    PROCESSING = "processing"


@dataclass(frozen=True)
class SourceImage:
    """User-provided photo, encoded once on selection.

    Attributes:
        filename: Name of the uploaded or fetched file.
        raw: Original file bytes.
        mime_type: Declared or detected image MIME type.
        data_uri: `data:<mime>;base64,<payload>` encoding of `raw`.
    """

    filename: str
    raw: bytes
    mime_type: str
    data_uri: str

    @property
    def preview_url(self) -> str:
        return self.data_uri


@dataclass(frozen=True)
class GeneratedImage:
    """Image returned by the remote model, as a data-URI."""

    url: str
    mime_type: str


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    kind: LoadKind


@dataclass(frozen=True)
class Complete:
    result: GeneratedImage


@dataclass(frozen=True)
class Failed:
    message: str


Status = Idle | Loading | Complete | Failed


@dataclass(frozen=True)
class ProcessingState:
    """Rendered view of a `Status`.

    Attributes:
        is_loading: True only while a file load or generation is in flight.
        error: Message of the most recent failed action, else `None`.
        stage: UI lifecycle marker.
    """

    is_loading: bool = False
    error: str | None = None
    stage: Stage = Stage.IDLE

    @classmethod
    def from_status(cls, status: Status) -> "ProcessingState":
        if isinstance(status, Loading):
            return cls(is_loading=True, error=None, stage=Stage(status.kind.value))
        if isinstance(status, Complete):
            return cls(stage=Stage.COMPLETE)
        if isinstance(status, Failed):
            return cls(error=status.message, stage=Stage.IDLE)
        return cls()
