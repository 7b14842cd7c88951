"""
HTTP API adapter for the image studio.

Architectural role:
- Expose one `StudioSession` per client session over JSON/multipart endpoints.
- Enforce adapter-level input validation (session lookup, image uploads).
- Delegate every state transition to `artvision.core.session.StudioSession`.

Endpoint responsibilities:
- `GET /v1/health`: liveness and configured model id.
- `POST /v1/sessions`: create a session and return its snapshot.
- `GET|DELETE /v1/sessions/{id}`: read or drop a session.
- `POST /v1/sessions/{id}/image`: multipart upload -> `select_file`.
- `POST /v1/sessions/{id}/example`: `load_example`.
- `PUT /v1/sessions/{id}/prompt`: `set_prompt`.
- `POST /v1/sessions/{id}/generate`: `generate` (optional prompt override).
- `POST /v1/sessions/{id}/clear`: `clear`.
- `GET /v1/sessions/{id}/download`: generated image as an attachment.

Error handling strategy:
- Unknown session -> HTTP 404 `{"error": ...}`.
- Rejected upload -> HTTP 400; action while another is in flight -> HTTP 409.
- Generation/example failures are NOT HTTP errors: the snapshot carries
  `error`, like an inline form message.

Dependency injection:
- `create_app(client_factory, example_fetcher)` stores collaborators on
  `app.state`; tests pass fakes instead of touching the network.

Side effects:
- Sessions live in process memory only; nothing is persisted. At most
  `MAX_SESSIONS` are kept; creating one more evicts the oldest.
- Every session-mutating endpoint is `async def`, so all session state
  changes run on the event loop.

Serving:
- `artvision-serve` (or `uvicorn artvision.api.http_api:app`).
- Emits debug logs only when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import uuid

import uvicorn
from typing import Callable

from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from artvision.api.multimodal.upload_manager import UploadError, validate_upload
from artvision.config import DEBUG, HOST, IMAGE_MODEL_NAME, MAX_SESSIONS, PORT
from artvision.core.session import (
    ImageClientProtocol,
    NoResultError,
    SessionBusyError,
    StudioSession,
)
from artvision.image.service import create_client, fetch_example_image


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


# ============================================================
# Request Schemas
# ============================================================

class PromptRequest(BaseModel):
    prompt: str


class GenerateRequest(BaseModel):
    """Optional prompt override sent with a generate call."""
    prompt: str | None = None


# ============================================================
# Session Registry Helpers
# ============================================================

def _not_found(session_id: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f"Unknown session: {session_id}"})


def _busy(err: SessionBusyError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(err)})


def _render(session_id: str, session: StudioSession) -> dict:
    return {"session_id": session_id, **session.snapshot()}


def _get_session(request: Request, session_id: str) -> StudioSession | None:
    return request.app.state.sessions.get(session_id)


# ============================================================
# Endpoints
# ============================================================

@router.get("/health")
def health():
    return {"status": "ok", "model": IMAGE_MODEL_NAME}


@router.post("/sessions")
async def create_session(request: Request):
    """Create a fresh session with its own generation client.

    When the registry is full the oldest session is cleared and evicted.
    """
    state = request.app.state
    while state.sessions and len(state.sessions) >= state.max_sessions:
        evicted_id = next(iter(state.sessions))
        state.sessions.pop(evicted_id).clear()
        logger.info("Evicted session %s (registry limit %d)", evicted_id, state.max_sessions)

    session_id = uuid.uuid4().hex
    session = StudioSession(
        client=state.client_factory(),
        example_fetcher=state.example_fetcher,
    )
    state.sessions[session_id] = session

    if DEBUG:
        logger.debug("Session created: %s", session_id)

    return _render(session_id, session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, request: Request):
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)
    return _render(session_id, session)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, request: Request):
    session = request.app.state.sessions.pop(session_id, None)
    if session is None:
        return _not_found(session_id)
    session.clear()
    return {"session_id": session_id, "deleted": True}


@router.post("/sessions/{session_id}/image")
async def upload_image(session_id: str, request: Request, file: UploadFile = File(...)):
    """
    Accept a multipart image upload and make it the session's source image.

    Input validation behavior:
    - Empty, oversized, or non-image uploads -> HTTP 400.
    """
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    raw = await file.read()
    filename = file.filename or "upload"
    try:
        mime_type = validate_upload(raw, filename, file.content_type)
    except UploadError as err:
        return JSONResponse(status_code=400, content={"error": str(err)})

    session.select_file(filename, raw, mime_type)
    return _render(session_id, session)


@router.post("/sessions/{session_id}/example")
async def load_example(session_id: str, request: Request):
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    try:
        await session.load_example()
    except SessionBusyError as err:
        return _busy(err)
    return _render(session_id, session)


@router.put("/sessions/{session_id}/prompt")
async def set_prompt(session_id: str, body: PromptRequest, request: Request):
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    session.set_prompt(body.prompt)
    return _render(session_id, session)


@router.post("/sessions/{session_id}/generate")
async def generate(session_id: str, request: Request, body: GenerateRequest | None = None):
    """
    Run one generation for the session.

    Response formatting:
    - Always the session snapshot; `stage == "complete"` with `result` on
      success, `stage == "idle"` with `error` on failure.
    """
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    prompt = body.prompt if body is not None else None
    try:
        await session.generate(prompt)
    except SessionBusyError as err:
        return _busy(err)

    if DEBUG:
        logger.debug("Generate settled for %s: %s", session_id, session.state)

    return _render(session_id, session)


@router.post("/sessions/{session_id}/clear")
async def clear(session_id: str, request: Request):
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    session.clear()
    return _render(session_id, session)


@router.get("/sessions/{session_id}/download")
async def download(session_id: str, request: Request):
    """Return the generated image bytes with a suggested filename."""
    session = _get_session(request, session_id)
    if session is None:
        return _not_found(session_id)

    try:
        filename, raw, mime_type = session.download()
    except NoResultError as err:
        return JSONResponse(status_code=404, content={"error": str(err)})

    return Response(
        content=raw,
        media_type=mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================
# Application Factory
# ============================================================

def create_app(
    client_factory: Callable[[], ImageClientProtocol] = create_client,
    example_fetcher: Callable[[], tuple[str, bytes, str]] = fetch_example_image,
    max_sessions: int = MAX_SESSIONS,
) -> FastAPI:
    """Build the FastAPI application with injected collaborators."""
    application = FastAPI(title="Artistic Vision Studio")
    application.state.client_factory = client_factory
    application.state.example_fetcher = example_fetcher
    application.state.sessions = {}
    application.state.max_sessions = max(1, max_sessions)
    application.include_router(router)
    return application


app = create_app()


def serve():
    """Serve `app` with uvicorn on `HOST`:`PORT`."""
    logging.basicConfig(level=logging.DEBUG if DEBUG else logging.INFO)
    uvicorn.run("artvision.api.http_api:app", host=HOST, port=PORT)


if __name__ == "__main__":
    serve()
