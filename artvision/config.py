"""Runtime configuration for the image studio.

Architectural role:
    Centralizes model selection, endpoint addresses, UI defaults, and credential
    lookup for `artvision.image`, `artvision.core`, and the API adapters.

Integration:
    - `image.client.GeminiImageClient` consumes `GEMINI_URL_TEMPLATE`,
      `IMAGE_MODEL_NAME`, and `REQUEST_TIMEOUT`.
    - `image.service.create_client` resolves credentials through `load_key`.
    - `core.session.StudioSession` consumes `DEFAULT_PROMPT` and
      `DOWNLOAD_FILENAME`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; the generation client turns it
    into a user-facing error at call time so the application can start keyless.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Opt-in verbose adapter output.
DEBUG = os.getenv("DEBUG") == "true"

# Remote model routing controls.
IMAGE_MODEL_NAME = os.getenv("IMAGE_MODEL_NAME", "gemini-2.5-flash-image")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_URL_TEMPLATE = GEMINI_BASE_URL.rstrip("/") + "/models/{model}:generateContent"
GEMINI_KEY_FILE = "config/gemini.key"

# Seconds before an outbound HTTP call is abandoned.
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120"))

# Example photo offered to first-time users; treated like an upload.
EXAMPLE_IMAGE_URL = os.getenv(
    "EXAMPLE_IMAGE_URL",
    "https://images.unsplash.com/photo-1573496359142-b8d87734a5a2"
    "?q=80&w=2576&auto=format&fit=crop",
)
EXAMPLE_IMAGE_FILENAME = "example_portrait.jpg"
EXAMPLE_IMAGE_MIME_TYPE = "image/jpeg"

DOWNLOAD_FILENAME = "artistic-vision-result.png"

MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20"))
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# In-memory HTTP sessions kept before the oldest is evicted.
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

# Prompt restored on every clear.
DEFAULT_PROMPT = (
    "Using the reference image, create a hyper-realistic modern oil painting with "
    "soft directional lighting. Preserve the outfit details. Add refined brush "
    "textures and natural skin tones. Background should be a soft, blurred studio "
    "gradient in deep navy and charcoal. Ultra-detailed realism, elegant fine-art "
    "finish. Portrait size: 4:5 ratio."
)


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Generic `API_KEY` environment variable.
        3. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name) or os.getenv("API_KEY")
    if env_value:
        return env_value.strip()
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
