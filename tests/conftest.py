import json
import os
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from voice_relay.api.deps import RelayServices
from voice_relay.core.config import Settings
from voice_relay.core.errors import ConversionError
from voice_relay.main import create_app
from voice_relay.services.text_assistant import TextAssistantClient
from voice_relay.services.transcription_client import TranscriptionClient


def make_response(status_code: int = 200, payload=None) -> Mock:
    """A stand-in for requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    response.text = json.dumps(payload) if payload is not None else ""
    return response


def chat_completion(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


class FakeConverter:
    """Writes a small WAV-ish file instead of calling ffmpeg."""

    def __init__(self, output_size: int = 1024, error: Exception | None = None):
        self.output_size = output_size
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def convert_to_wav(self, input_path, output_path=None):
        self.calls.append((input_path, output_path))
        assert os.path.exists(input_path)
        with open(output_path, "wb") as f:
            f.truncate(self.output_size)
        if self.error is not None:
            raise self.error
        return output_path

    def shutdown(self):
        pass


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        openai_key="sk-test",
        google_api_key="google-test",
        openai_base_url="https://api.example.test/v1",
        upload_dir=str(tmp_path / "uploads"),
        upstream_workers=2,
        ffmpeg_workers=1,
    )


@pytest.fixture
def session() -> Mock:
    return Mock()


@pytest.fixture
def converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def services(settings, session, converter):
    relay = RelayServices(
        settings=settings,
        converter=converter,
        transcriber=TranscriptionClient(settings, session=session),
        assistant=TextAssistantClient(settings, session=session),
    )
    yield relay
    relay.shutdown()


@pytest.fixture
def client(settings, services) -> TestClient:
    return TestClient(create_app(settings, services))


@pytest.fixture
def conversion_error() -> ConversionError:
    return ConversionError("Audio conversion failed: Invalid data found when processing input")
