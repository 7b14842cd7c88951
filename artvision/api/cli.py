"""
Interactive CLI adapter for the image studio.

Architectural role:
- Exposes terminal interaction over a single `StudioSession`.
- Delegates all state transitions to `artvision.core.session`.

Interface responsibilities:
- Parse local commands and map them to session actions.
- Render the session status after each action.
- Write generated images to disk on `save`.

Request lifecycle (per user turn, CLI):
1. Read a single line from stdin.
2. Split into command and argument.
3. Invoke the matching session action (`asyncio.run` for async actions).
4. Print the resulting stage/error/result summary.

Commands:
- `open <path>`     select a local image file
- `example`         fetch the example portrait
- `prompt [text]`   show or replace the prompt
- `generate`        run the model on the current image and prompt
- `save [path]`     write the generated image (default `artistic-vision-result.png`)
- `status`          print current state
- `clear`           reset image, result, prompt, and error
- `help`, `exit` / `quit`

Error handling strategy:
- Handles EOF and keyboard interrupts without traceback output.
- Upload/download misuse and file write failures are printed, not raised.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import sys

from artvision.api.multimodal.upload_manager import UploadError, read_local_image
from artvision.config import IMAGE_MODEL_NAME
from artvision.core.session import NoResultError, StudioSession
from artvision.image.service import create_client


HELP_TEXT = """Commands:
  open <path>     select a local image file
  example         load the example portrait
  prompt [text]   show or replace the prompt
  generate        transform the image with the current prompt
  save [path]     save the generated image
  status          show current state
  clear           reset everything
  exit            quit"""


# =========================================================
# RENDERING
# =========================================================

def render_status(session: StudioSession) -> str:
    """Summarize session state in a few lines."""
    state = session.state
    lines = [f"Stage: {state.stage.value}"]

    if session.source_image is not None:
        src = session.source_image
        lines.append(f"Image: {src.filename} ({src.mime_type}, {len(src.raw)} bytes)")
    else:
        lines.append("Image: none")

    if session.result is not None:
        lines.append(f"Result: ready ({session.result.mime_type}); use 'save' to write it")

    if state.error:
        lines.append(f"Error: {state.error}")

    return "\n".join(lines)


# =========================================================
# COMMAND DISPATCH
# =========================================================

def handle_command(session: StudioSession, line: str) -> str | None:
    """
    Execute one CLI command against the session.

    Returns:
    - Text to print, or `None` when the loop should stop.
    """
    command, _, arg = line.strip().partition(" ")
    command = command.lower()
    arg = arg.strip()

    if command in ("exit", "quit"):
        return None

    if command == "help":
        return HELP_TEXT

    if command == "open":
        if not arg:
            return "Usage: open <path>"
        try:
            filename, raw, mime_type = read_local_image(arg)
        except UploadError as err:
            return f"Error: {err}"
        session.select_file(filename, raw, mime_type)
        return render_status(session)

    if command == "example":
        print("Loading example image...")
        asyncio.run(session.load_example())
        return render_status(session)

    if command == "prompt":
        if arg:
            session.set_prompt(arg)
            return "Prompt updated."
        return f"Prompt: {session.prompt}"

    if command == "generate":
        print(f"Generating with {IMAGE_MODEL_NAME}...")
        asyncio.run(session.generate())
        return render_status(session)

    if command == "save":
        try:
            filename, raw, _ = session.download()
        except NoResultError as err:
            return f"Error: {err}"
        path = arg or filename
        try:
            with open(path, "wb") as f:
                f.write(raw)
        except OSError as err:
            return f"Error: {err}"
        return f"Saved {len(raw)} bytes to {path}"

    if command == "status":
        return render_status(session)

    if command == "clear":
        session.clear()
        return "Cleared."

    return f"Unknown command: {command}. Type 'help' for a list."


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main():
    """
    Run the interactive terminal session.

    Error handling strategy:
    - EOF and keyboard interrupts end the loop gracefully.
    """
    # Best-effort UTF-8 console output; startup never fails on it.
    if hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
        except Exception:
            pass

    logging.basicConfig(level=logging.WARNING)
    session = StudioSession(client=create_client())

    print("Artistic Vision Studio started. (Type 'help' for commands, 'exit' to quit)\n")
    print("-" * 60)

    while True:

        try:
            line = input("studio> ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not line:
            continue

        output = handle_command(session, line)
        if output is None:
            print("Shutting down.")
            break

        print(output)
        print("-" * 60)


if __name__ == "__main__":
    main()
