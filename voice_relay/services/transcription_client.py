import os
from typing import Optional

import requests
from loguru import logger

from voice_relay.core.config import Settings
from voice_relay.core.errors import FileTooLarge, UpstreamError
from voice_relay.services.openai_http import OpenAIHttp

# hard limit of the speech API for a single request body
MAX_TRANSCRIPTION_BYTES = 25 * 1024 * 1024


class TranscriptionClient:
    """
    Speech-to-text through the OpenAI transcription endpoint.

    Expects a local WAV produced by the format converter. Files above
    MAX_TRANSCRIPTION_BYTES are rejected before anything is sent.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._model = settings.transcription_model
        self._http = OpenAIHttp(
            api_key=settings.openai_key,
            base_url=settings.openai_base_url,
            timeout=settings.upstream_timeout,
            max_workers=settings.upstream_workers,
            session=session,
            name="stt",
        )

    def _blocking_transcribe(self, audio_path: str) -> str:
        file_size = os.path.getsize(audio_path)
        if file_size > MAX_TRANSCRIPTION_BYTES:
            raise FileTooLarge("File size exceeds the 25MB limit.")

        logger.info(f"[stt] sending {file_size} bytes to model={self._model}")
        with open(audio_path, "rb") as audio_file:
            data = self._http.post(
                "audio/transcriptions",
                files={"file": ("audio.wav", audio_file, "audio/wav")},
                data={"model": self._model},
            )

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise UpstreamError("Transcription response did not contain text.")
        return text

    async def transcribe(self, audio_path: str) -> str:
        return await self._http.run(self._blocking_transcribe, audio_path)

    def get_model_name(self) -> str:
        return self._model

    def shutdown(self) -> None:
        self._http.shutdown()
