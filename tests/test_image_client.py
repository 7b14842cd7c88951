import pytest
import requests

from artvision.image.client import (
    GeminiImageClient,
    ImageGenerationError,
    build_payload,
    parse_response,
)
from tests.conftest import FakeHTTP, FakeResponse


def _parts(*parts):
    return {"candidates": [{"content": {"parts": list(parts)}}]}


def test_build_payload_strips_data_uri_prefix_and_orders_parts():
    payload = build_payload("data:image/jpeg;base64,QUJD", "image/jpeg", "make it blue")

    parts = payload["contents"]["parts"]
    assert parts[0] == {"text": "make it blue"}
    assert parts[1] == {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}}


def test_build_payload_keeps_bare_base64():
    payload = build_payload("QUJD", "image/png", "x")
    assert payload["contents"]["parts"][1]["inlineData"]["data"] == "QUJD"


def test_parse_response_returns_first_inline_image():
    result = parse_response(_parts(
        {"text": "here you go"},
        {"inlineData": {"mimeType": "image/png", "data": "AAAA"}},
        {"inlineData": {"mimeType": "image/jpeg", "data": "BBBB"}},
    ))

    assert result.url == "data:image/png;base64,AAAA"
    assert result.mime_type == "image/png"


def test_parse_response_defaults_mime_type():
    result = parse_response(_parts({"inlineData": {"data": "AAAA"}}))
    assert result.url == "data:image/png;base64,AAAA"


def test_parse_response_text_only_is_reported_truncated():
    text = "Sorry, cannot comply " + "x" * 200

    with pytest.raises(ImageGenerationError) as exc:
        parse_response(_parts({"text": text}))

    message = str(exc.value)
    assert "The model returned text instead of an image" in message
    assert text[:100] in message
    assert text[:101] not in message


def test_parse_response_short_refusal():
    with pytest.raises(ImageGenerationError, match="Sorry, cannot comply"):
        parse_response(_parts({"text": "Sorry, cannot comply"}))


def test_parse_response_without_image_or_text():
    with pytest.raises(ImageGenerationError, match="No image data found in response"):
        parse_response(_parts({"inlineData": {"mimeType": "image/png", "data": ""}}))


@pytest.mark.parametrize("body", [{}, {"candidates": []}, {"candidates": [{"content": {}}]}])
def test_parse_response_without_parts(body):
    with pytest.raises(ImageGenerationError, match="No content generated"):
        parse_response(body)


def test_client_posts_to_model_endpoint_with_key():
    http = FakeHTTP(FakeResponse(body=_parts({"inlineData": {"mimeType": "image/png", "data": "AAAA"}})))
    client = GeminiImageClient(api_key="secret", model="test-model", timeout=5, http=http)

    result = client.generate_edited_image("data:image/png;base64,QUJD", "image/png", "prompt")

    assert result.url == "data:image/png;base64,AAAA"
    sent = http.requests[0]
    assert sent["url"].endswith("/models/test-model:generateContent")
    assert sent["headers"]["x-goog-api-key"] == "secret"
    assert sent["timeout"] == 5
    assert sent["json"]["contents"]["parts"][1]["inlineData"]["data"] == "QUJD"


def test_client_without_key_fails_before_request():
    http = FakeHTTP()
    client = GeminiImageClient(api_key=None, http=http)

    with pytest.raises(ImageGenerationError, match="API key missing"):
        client.generate_edited_image("QUJD", "image/png", "prompt")
    assert http.requests == []


def test_client_surfaces_service_error_message():
    body = {"error": {"code": 400, "message": "API key not valid."}}
    client = GeminiImageClient(api_key="k", http=FakeHTTP(FakeResponse(status_code=400, body=body)))

    with pytest.raises(ImageGenerationError, match="API key not valid."):
        client.generate_edited_image("QUJD", "image/png", "prompt")


def test_client_wraps_transport_failures():
    http = FakeHTTP(error=requests.exceptions.ConnectionError("connection refused"))
    client = GeminiImageClient(api_key="k", http=http)

    with pytest.raises(ImageGenerationError, match="connection refused"):
        client.generate_edited_image("QUJD", "image/png", "prompt")


def test_parse_response_rejects_malformed_base64():
    with pytest.raises(ImageGenerationError, match="No image data found in response"):
        parse_response(_parts({"inlineData": {"mimeType": "image/png", "data": "AAA"}}))
