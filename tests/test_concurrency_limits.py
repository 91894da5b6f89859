import asyncio
import threading
from unittest.mock import patch

import ffmpeg

from conftest import chat_completion, make_response
from voice_relay.services.audio_service import FormatConverter
from voice_relay.services.openai_http import OpenAIHttp
from voice_relay.services.text_assistant import TextAssistantClient


class Gate:
    """Holds callers until released and records how many were inside at once."""

    def __init__(self):
        self.release = threading.Event()
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.entered = 0

    def __enter__(self):
        with self._lock:
            self.active += 1
            self.entered += 1
            self.peak = max(self.peak, self.active)
        assert self.release.wait(timeout=10), "gate was never released"
        return self

    def __exit__(self, *exc):
        with self._lock:
            self.active -= 1
        return False


async def _run_gated(gate: Gate, coros, settle: float = 0.3):
    tasks = [asyncio.ensure_future(c) for c in coros]
    await asyncio.sleep(settle)
    entered_before_release = gate.entered
    gate.release.set()
    results = await asyncio.gather(*tasks)
    return entered_before_release, results


def test_converter_runs_at_most_max_workers_ffmpeg_processes(tmp_path):
    workers = 2
    gate = Gate()
    converter = FormatConverter(max_workers=workers)

    def fake_run(stream, **kwargs):
        output = next(a for a in ffmpeg.get_args(stream) if a.endswith(".wav"))
        with gate:
            with open(output, "wb") as f:
                f.write(b"RIFF")

    sources = []
    for i in range(workers + 1):
        src = tmp_path / f"in{i}.m4a"
        src.write_bytes(b"x")
        sources.append((str(src), str(tmp_path / f"out{i}.wav")))

    try:
        with patch("voice_relay.services.audio_service.ffmpeg.run", side_effect=fake_run):
            entered, results = asyncio.run(
                _run_gated(gate, [converter.convert_to_wav(s, o) for s, o in sources])
            )
    finally:
        converter.shutdown()

    assert entered == workers
    assert gate.peak <= workers
    assert results == [o for _, o in sources]


def test_openai_http_pool_caps_calls_in_flight():
    workers = 3
    gate = Gate()
    http = OpenAIHttp(api_key="sk-test", base_url="https://api.example.test/v1", max_workers=workers)

    def blocking_call(i):
        with gate:
            return i

    try:
        entered, results = asyncio.run(
            _run_gated(gate, [http.run(blocking_call, i) for i in range(workers + 2)])
        )
    finally:
        http.shutdown()

    assert entered == workers
    assert gate.peak <= workers
    assert results == list(range(workers + 2))


def test_chat_client_respects_upstream_workers(settings, session):
    # settings fixture uses upstream_workers=2
    gate = Gate()

    def slow_post(*args, **kwargs):
        with gate:
            return make_response(200, chat_completion("done"))

    session.post.side_effect = slow_post
    assistant = TextAssistantClient(settings, session=session)

    try:
        entered, results = asyncio.run(
            _run_gated(gate, [assistant.summarize(f"text {i}", "en") for i in range(settings.upstream_workers + 1)])
        )
    finally:
        assistant.shutdown()

    assert entered == settings.upstream_workers
    assert gate.peak <= settings.upstream_workers
    assert results == ["done"] * (settings.upstream_workers + 1)
    assert session.post.call_count == settings.upstream_workers + 1
