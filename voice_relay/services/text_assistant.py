from typing import Optional

import requests
from loguru import logger

from voice_relay.core.config import Settings
from voice_relay.core.errors import UpstreamError
from voice_relay.services.openai_http import OpenAIHttp
from voice_relay.services.prompts import TextOperation, build_messages


class TextAssistantClient:
    """
    Summarize / key points / polish through the OpenAI chat-completion API.

    All three operations send the same request shape; only the prompt pair
    picked from the prompt table differs.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._model = settings.chat_model
        self._max_tokens = settings.chat_max_tokens
        self._http = OpenAIHttp(
            api_key=settings.openai_key,
            base_url=settings.openai_base_url,
            timeout=settings.upstream_timeout,
            max_workers=settings.upstream_workers,
            session=session,
            name="chat",
        )

    def build_payload(self, operation: TextOperation, text: str, language: Optional[str]) -> dict:
        return {
            "model": self._model,
            "messages": build_messages(operation, text, language),
            "max_tokens": self._max_tokens,
            "stop": None,
        }

    def _blocking_transform(self, operation: TextOperation, text: str, language: Optional[str]) -> str:
        logger.info(f"[chat] {operation.value} language={language or 'default'} chars={len(text)}")
        data = self._http.post("chat/completions", json=self.build_payload(operation, text, language))
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Chat completion response did not contain a message.") from e
        return (content or "").strip()

    async def transform(self, operation: TextOperation, text: str, language: Optional[str] = None) -> str:
        return await self._http.run(self._blocking_transform, operation, text, language)

    async def summarize(self, text: str, language: Optional[str] = None) -> str:
        return await self.transform(TextOperation.SUMMARIZE, text, language)

    async def highlight(self, text: str, language: Optional[str] = None) -> str:
        return await self.transform(TextOperation.HIGHLIGHT, text, language)

    async def polish(self, text: str, language: Optional[str] = None) -> str:
        return await self.transform(TextOperation.POLISH, text, language)

    def shutdown(self) -> None:
        self._http.shutdown()
