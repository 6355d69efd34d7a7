"""Unit tests for Direct mode: RecallClient, OpenAITTS and DirectBackend.

All HTTP goes through httpx.MockTransport routers that record requests, so
tests assert on request construction as well as on parsed results.
"""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from src.meeting_gateway.core.errors import (
    UpstreamAuthError,
    UpstreamGenericError,
    UpstreamNotFoundError,
    UpstreamServiceError,
)
from src.meeting_gateway.gateway.direct import DirectBackend
from src.meeting_gateway.gateway.openai_tts import OpenAITTS
from src.meeting_gateway.gateway.recall_client import RecallClient, build_bot_config
from src.meeting_gateway.gateway.schemas import Voice


class Router:
    """MockTransport handler: (method, path) -> list of queued responses."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(599, text=f"unrouted {request.method} {request.url.path}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def recall_router() -> Router:
    return Router()


@pytest.fixture
def tts_router() -> Router:
    return Router()


@pytest.fixture
def direct_backend(recall_router, tts_router) -> DirectBackend:
    recall = RecallClient(
        api_key="recall-key",
        base_url="https://api.recall.ai/api/v1",
        read_retry_attempts=3,
        read_retry_wait=0,
        transport=httpx.MockTransport(recall_router),
    )
    tts = OpenAITTS(api_key="openai-key", transport=httpx.MockTransport(tts_router))
    return DirectBackend(recall_client=recall, tts_client=tts)


# ── Bot config ──────────────────────────────────────────────────────────────


class TestBuildBotConfig:
    def test_includes_transcription_and_greeting(self):
        config = build_bot_config("https://meet.google.com/abc-defg-hij", "Bot1")

        assert config["bot_name"] == "Bot1"
        assert config["meeting_url"] == "https://meet.google.com/abc-defg-hij"
        assert config["transcription_options"] == {"provider": "deepgram"}
        assert config["chat"]["on_bot_join"]["message"] == "👋 Bot1 has joined the meeting."
        assert "real_time_transcription" not in config

    def test_webhook_and_greeting_are_optional(self):
        config = build_bot_config(
            "https://zoom.us/j/1",
            "Bot1",
            transcript_webhook_url="https://hooks.example.com/t",
            join_greeting=False,
        )
        assert config["real_time_transcription"] == {
            "destination_url": "https://hooks.example.com/t",
            "partial_results": False,
        }
        assert "chat" not in config


# ── DirectBackend ───────────────────────────────────────────────────────────


class TestDirectBackend:
    @pytest.mark.asyncio
    async def test_create_bot_posts_config_with_token_auth(self, direct_backend, recall_router):
        recall_router.add("POST", "/api/v1/bot/", httpx.Response(201, json={"id": "bot-abc"}))

        bot_id = await direct_backend.create_bot("https://meet.google.com/abc-defg-hij", "Bot1")

        assert bot_id == "bot-abc"
        request = recall_router.requests[0]
        assert request.headers["Authorization"] == "Token recall-key"
        assert json.loads(request.content)["bot_name"] == "Bot1"

    @pytest.mark.asyncio
    async def test_create_bot_is_not_retried(self, direct_backend, recall_router):
        recall_router.add("POST", "/api/v1/bot/", httpx.Response(503))

        with pytest.raises(UpstreamServiceError):
            await direct_backend.create_bot("https://meet.google.com/abc-defg-hij", "Bot1")

        assert len(recall_router.requests) == 1

    @pytest.mark.asyncio
    async def test_fetch_transcript_parses_entries(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/transcript/",
            httpx.Response(
                200,
                json=[
                    {
                        "speaker": "Dana",
                        "words": [
                            {"text": "hello", "start_timestamp": 1.0, "end_timestamp": 1.4},
                            {"text": "there", "start_timestamp": 1.5, "end_timestamp": 2.0},
                        ],
                    },
                    {
                        "speaker": "Lee",
                        "words": [
                            {
                                "text": "hi",
                                "start_timestamp": {"relative": 3.0},
                                "end_timestamp": {"relative": 3.2},
                            }
                        ],
                    },
                ],
            ),
        )

        entries = await direct_backend.fetch_transcript("bot-abc")

        assert [entry.render() for entry in entries] == ["Dana: hello there", "Lee: hi"]
        assert entries[0].effective_timestamp == 2.0
        assert entries[1].effective_timestamp == 3.2

    @pytest.mark.asyncio
    async def test_fetch_transcript_retries_transient_failure(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/transcript/",
            httpx.Response(503),
            httpx.Response(200, json=[]),
        )

        entries = await direct_backend.fetch_transcript("bot-abc")

        assert entries == []
        assert len(recall_router.requests) == 2

    @pytest.mark.asyncio
    async def test_fetch_transcript_does_not_retry_auth_failure(self, direct_backend, recall_router):
        recall_router.add("GET", "/api/v1/bot/bot-abc/transcript/", httpx.Response(401))

        with pytest.raises(UpstreamAuthError, match="RECALL_TOKEN"):
            await direct_backend.fetch_transcript("bot-abc")

        assert len(recall_router.requests) == 1

    @pytest.mark.asyncio
    async def test_speak_synthesizes_then_pushes_audio(
        self, direct_backend, recall_router, tts_router
    ):
        tts_router.add("POST", "/v1/audio/speech", httpx.Response(200, content=b"mp3-bytes"))
        recall_router.add("POST", "/api/v1/bot/bot-abc/output_audio/", httpx.Response(200, json={}))

        duration = await direct_backend.speak("bot-abc", "Hello everyone", Voice.ONYX)

        assert duration == pytest.approx(len("Hello everyone") * 0.065)
        tts_body = json.loads(tts_router.requests[0].content)
        assert tts_body == {"model": "tts-1", "input": "Hello everyone", "voice": "onyx", "speed": 1.0}
        assert tts_router.requests[0].headers["Authorization"] == "Bearer openai-key"
        push_body = json.loads(recall_router.requests[0].content)
        assert push_body["kind"] == "mp3"
        assert base64.b64decode(push_body["b64_data"]) == b"mp3-bytes"

    @pytest.mark.asyncio
    async def test_speak_synthesis_failure_pushes_nothing(
        self, direct_backend, recall_router, tts_router
    ):
        tts_router.add("POST", "/v1/audio/speech", httpx.Response(401, json={"error": "bad key"}))

        with pytest.raises(UpstreamAuthError, match="OPENAI_KEY"):
            await direct_backend.speak("bot-abc", "Hello", Voice.NOVA)

        assert recall_router.requests == []

    @pytest.mark.asyncio
    async def test_get_status_uses_latest_status_change(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/",
            httpx.Response(
                200,
                json={
                    "id": "bot-abc",
                    "bot_name": "Bot1",
                    "meeting_url": {"platform": "google_meet", "meeting_id": "abc-defg-hij"},
                    "created_at": "2026-10-19T10:00:00Z",
                    "status_changes": [{"code": "ready"}, {"code": "in_waiting_room"}],
                },
            ),
        )

        status = await direct_backend.get_status("bot-abc")

        assert status.display_name == "Bot1"
        assert status.status_code == "in_waiting_room"
        assert status.meeting_url == "https://meet.google.com/abc-defg-hij"
        assert status.created_at == "2026-10-19T10:00:00Z"

    @pytest.mark.asyncio
    async def test_get_status_without_changes_is_unknown(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/",
            httpx.Response(200, json={"bot_name": "Bot1", "status_changes": []}),
        )
        status = await direct_backend.get_status("bot-abc")
        assert status.status_code == "unknown"

    @pytest.mark.asyncio
    async def test_send_chat_posts_message(self, direct_backend, recall_router):
        recall_router.add(
            "POST", "/api/v1/bot/bot-abc/send_chat_message/", httpx.Response(200, json={})
        )
        await direct_backend.send_chat("bot-abc", "See the doc")
        assert json.loads(recall_router.requests[0].content) == {"message": "See the doc"}

    @pytest.mark.asyncio
    async def test_leave_404_is_not_found(self, direct_backend, recall_router):
        recall_router.add("POST", "/api/v1/bot/bot-abc/leave_call/", httpx.Response(404))

        with pytest.raises(UpstreamNotFoundError):
            await direct_backend.leave("bot-abc")

        assert len(recall_router.requests) == 1

    @pytest.mark.asyncio
    async def test_create_bot_rejects_non_object_body(self, direct_backend, recall_router):
        recall_router.add("POST", "/api/v1/bot/", httpx.Response(201, json=["bot-abc"]))

        with pytest.raises(UpstreamGenericError, match="Recall.ai returned an unexpected bot payload"):
            await direct_backend.create_bot("https://meet.google.com/abc-defg-hij", "Bot1")

    @pytest.mark.asyncio
    async def test_get_status_tolerates_loose_field_types(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/",
            httpx.Response(
                200,
                json={
                    "bot_name": "Bot1",
                    "meeting_url": {"platform": "zoom"},
                    "created_at": 1760000000,
                    "status_changes": [{"code": "ready"}, {"code": None}],
                },
            ),
        )

        status = await direct_backend.get_status("bot-abc")

        assert status.status_code == "unknown"
        assert status.meeting_url is None
        assert status.created_at == "1760000000"

    @pytest.mark.asyncio
    async def test_fetch_transcript_rejects_unreadable_timestamps(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/transcript/",
            httpx.Response(
                200,
                json=[{"speaker": "Dana", "words": [{"text": "hi", "end_timestamp": "soon"}]}],
            ),
        )

        with pytest.raises(UpstreamGenericError, match="unexpected transcript payload"):
            await direct_backend.fetch_transcript("bot-abc")

    @pytest.mark.asyncio
    async def test_fetch_transcript_unwraps_participant_speaker(self, direct_backend, recall_router):
        recall_router.add(
            "GET",
            "/api/v1/bot/bot-abc/transcript/",
            httpx.Response(
                200,
                json=[
                    {
                        "participant": {"id": 7},
                        "speaker": {"id": 7, "name": "Dana"},
                        "words": [{"text": "hi", "end_timestamp": {"relative": 2.0}}],
                    }
                ],
            ),
        )

        entries = await direct_backend.fetch_transcript("bot-abc")

        assert entries[0].render() == "Dana: hi"
        assert entries[0].effective_timestamp == 2.0
