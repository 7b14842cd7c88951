import io

import pytest
import requests
from PIL import Image

from artvision.core.session import StudioSession
from artvision.core.state_types import GeneratedImage


RESULT = GeneratedImage(url="data:image/png;base64,AAAA", mime_type="image/png")


class FakeClient:
    """Records calls and returns a canned result or raises a canned error."""

    def __init__(self, result=RESULT, error=None, on_call=None):
        self.result = result
        self.error = error
        self.on_call = on_call
        self.calls = []

    def generate_edited_image(self, image_base64, mime_type, prompt):
        self.calls.append((image_base64, mime_type, prompt))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.result


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=b""):
        self.status_code = status_code
        self.body = body
        self.content = content

    def json(self):
        if self.body is None:
            raise ValueError("no json")
        return self.body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeHTTP:
    """Stands in for `requests.Session` and records posted payloads."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def example_fetcher(png_bytes):
    return lambda: ("example_portrait.jpg", png_bytes, "image/jpeg")


@pytest.fixture
def session(fake_client, example_fetcher):
    return StudioSession(client=fake_client, example_fetcher=example_fetcher, default_prompt="paint it")
