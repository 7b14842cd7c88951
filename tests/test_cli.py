from artvision.api.cli import handle_command
from artvision.image.client import ImageGenerationError


def test_open_and_generate_and_save(session, tmp_path, png_bytes):
    src = tmp_path / "in.png"
    src.write_bytes(png_bytes)
    out = tmp_path / "out.png"

    assert "Image: in.png" in handle_command(session, f"open {src}")
    assert "Stage: complete" in handle_command(session, "generate")
    assert "Saved 3 bytes" in handle_command(session, f"save {out}")
    assert out.read_bytes() == b"\x00\x00\x00"


def test_prompt_show_and_set(session):
    assert handle_command(session, "prompt") == "Prompt: paint it"
    assert handle_command(session, "prompt make it cubist") == "Prompt updated."
    assert session.prompt == "make it cubist"


def test_generate_error_is_rendered(session, fake_client, png_bytes):
    fake_client.error = ImageGenerationError("declined")
    session.select_file("in.png", png_bytes, "image/png")

    output = handle_command(session, "generate")

    assert "Stage: idle" in output
    assert "Error: declined" in output


def test_save_without_result(session):
    assert handle_command(session, "save").startswith("Error:")


def test_open_missing_file(session, tmp_path):
    assert handle_command(session, f"open {tmp_path / 'nope.png'}").startswith("Error:")


def test_example_and_clear(session):
    assert "example_portrait.jpg" in handle_command(session, "example")
    assert handle_command(session, "clear") == "Cleared."
    assert session.source_image is None


def test_exit_and_unknown(session):
    assert handle_command(session, "exit") is None
    assert handle_command(session, "QUIT") is None
    assert handle_command(session, "dance").startswith("Unknown command")


def test_save_into_missing_directory_reports_error(session, tmp_path, png_bytes):
    session.select_file("in.png", png_bytes, "image/png")
    handle_command(session, "generate")

    output = handle_command(session, f"save {tmp_path / 'nodir' / 'out.png'}")

    assert output.startswith("Error:")
    assert not (tmp_path / "nodir").exists()
