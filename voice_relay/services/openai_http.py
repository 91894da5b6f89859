import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Optional, TypeVar

import requests
from loguru import logger

from voice_relay.core.errors import ConfigurationError, UpstreamError

T = TypeVar("T")


def upstream_error_message(response: requests.Response) -> str:
    """
    Pulls ``error.message`` out of an OpenAI-style error body.
    Falls back to the raw body, then to the status line.
    """
    try:
        payload = response.json()
        message = payload["error"]["message"]
        if message:
            return str(message)
    except (ValueError, KeyError, TypeError):
        pass
    text = getattr(response, "text", "")
    if isinstance(text, str) and text.strip():
        return text.strip()
    return f"Upstream request failed with HTTP {response.status_code}"


class OpenAIHttp:
    """
    Thin requests wrapper shared by the speech and chat clients.

    Requests are blocking, so calls are pushed onto a private pool. Its size caps
    how many upstream calls this client has in flight at once.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 600.0,
        max_workers: int = 8,
        session: Optional[requests.Session] = None,
        name: str = "openai",
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._name = name

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise ConfigurationError("OPENAI_KEY is not configured.")
        return {"Authorization": f"Bearer {self._api_key}"}

    def post(self, path: str, **kwargs: Any) -> dict:
        """
        POSTs to ``{base_url}/{path}`` and returns the decoded JSON body.

        Raises:
            UpstreamError: transport failure, non-2xx status or non-JSON success body
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = self._headers()

        t0 = time.time()
        try:
            response = self._session.post(url, headers=headers, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise UpstreamError(f"Could not reach upstream API: {e}") from e
        elapsed_ms = int((time.time() - t0) * 1000)

        if not response.ok:
            message = upstream_error_message(response)
            logger.error(f"[{self._name}] POST {path} -> {response.status_code} in {elapsed_ms} ms: {message}")
            raise UpstreamError(message, upstream_status=response.status_code)

        logger.info(f"[{self._name}] POST {path} -> {response.status_code} in {elapsed_ms} ms")
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Upstream API returned a non-JSON response.") from e

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, partial(func, *args, **kwargs))

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)
        self._session.close()
