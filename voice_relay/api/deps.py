from dataclasses import dataclass

from fastapi import Request

from voice_relay.core.config import Settings
from voice_relay.services.audio_service import FormatConverter
from voice_relay.services.text_assistant import TextAssistantClient
from voice_relay.services.transcription_client import TranscriptionClient


@dataclass
class RelayServices:
    """Everything an endpoint needs, built once per application."""

    settings: Settings
    converter: FormatConverter
    transcriber: TranscriptionClient
    assistant: TextAssistantClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "RelayServices":
        return cls(
            settings=settings,
            converter=FormatConverter(
                max_workers=settings.ffmpeg_workers,
                cmd=settings.ffmpeg_binary,
                segment_duration=settings.segment_duration,
            ),
            transcriber=TranscriptionClient(settings),
            assistant=TextAssistantClient(settings),
        )

    def shutdown(self) -> None:
        self.converter.shutdown()
        self.transcriber.shutdown()
        self.assistant.shutdown()


def get_services(request: Request) -> RelayServices:
    return request.app.state.services
