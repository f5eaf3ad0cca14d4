"""Test the planning API client against an in-process aiohttp server"""
import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from djplanner.api_client import PlannerAPIClient, unwrap_envelope
from djplanner.exceptions import APIConnectionError, APIError, ParseError, ValidationError
from djplanner.models import MusicIdeasFormData, PlanningFormData, Song, TimelineFormData, TimelineItem

PROGRESS = {
    "chat_progress": {
        "id": 1,
        "event_id": 7,
        "user_id": 3,
        "current_step": 2,
        "answers": {"1": "OK"},
        "chat_messages": [
            {"id": "m1", "text": "Welcome!", "is_bot": True, "timestamp": "2026-06-01T12:00:00Z", "options": ["OK"]},
            {"id": "m2", "text": "OK", "is_bot": False, "timestamp": "2026-06-01 12:00:05"},
        ],
        "is_completed": False,
    },
    "current_step_data": {"question": "What's your name?", "input_type": "text", "next_step": 3},
    "is_completed": False,
    "dj_calendar_link": "https://cal.example.com/dj",
}


class Backend:
    """Records requests and replies with canned responses."""

    def __init__(self):
        self.requests = []

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/client/events/{event_id}/chat-progress", self.chat_progress)
        app.router.add_post("/client/events/{event_id}/chat-progress", self.answer)
        app.router.add_get("/client/events/{event_id}/planning", self.missing)
        app.router.add_put("/client/events/{event_id}/planning", self.save)
        app.router.add_post("/events/{event_id}/planning", self.save)
        app.router.add_put("/client/events/{event_id}/music-ideas", self.save)
        app.router.add_put("/client/events/{event_id}/timeline", self.save)
        app.router.add_get("/client/events/{event_id}/timeline", self.malformed)
        app.router.add_get("/client/events/{event_id}/music-ideas", self.slow)
        app.router.add_post("/client/events/{event_id}/documents/upload", self.upload)
        app.router.add_post("/client/events/{event_id}/documents/parse-notes", self.notes)
        return app

    async def _record(self, request):
        body = None
        if request.content_type == "application/json":
            body = await request.json()
        self.requests.append((request.method, request.path, dict(request.headers), body))

    async def chat_progress(self, request):
        await self._record(request)
        return web.json_response(PROGRESS)

    async def answer(self, request):
        await self._record(request)
        return web.json_response({
            "chat_progress": PROGRESS["chat_progress"],
            "next_step_data": PROGRESS["current_step_data"],
            "is_completed": False,
        })

    async def missing(self, request):
        await self._record(request)
        return web.json_response({"success": False, "error": "Event 7 not found"}, status=404)

    async def save(self, request):
        await self._record(request)
        return web.json_response({"success": True})

    async def malformed(self, request):
        await self._record(request)
        return web.json_response({"timeline_data": {"timeline_items": [{"name": "no id"}]}})

    async def slow(self, request):
        await asyncio.sleep(1)
        return web.json_response({})

    async def upload(self, request):
        form = await request.post()
        self.requests.append((request.method, request.path, dict(request.headers), {
            "event_id": form["event_id"],
            "filename": form["document"].filename,
            "content": form["document"].file.read(),
            "document_type": form["document_type"],
        }))
        if form["document"].filename == "empty.txt":
            return web.json_response({"success": True, "parsed_data": None})
        return web.json_response({
            "success": True,
            "parsed_data": {
                "extractedFields": {"guestCount": 120},
                "confidenceScore": 75,
                "rawText": "Guests: 120",
                "analysisTimestamp": "2026-06-01T12:00:00Z",
            },
        })

    async def notes(self, request):
        await self._record(request)
        return web.json_response({"data": {"extracted_fields": {"toasts": "Dad"}, "confidence_score": 60}})


def with_client(test, **client_kwargs):
    async def run():
        backend = Backend()
        async with test_utils.TestServer(backend.app()) as server:
            base_url = str(server.make_url("")).rstrip("/")
            async with PlannerAPIClient(base_url=base_url, **client_kwargs) as api:
                await test(api, backend)

    asyncio.run(run())


def test_get_chat_progress_parses_and_sends_headers():
    async def test(api, backend):
        response = await api.get_chat_progress(7)
        assert response.chat_progress.current_step == 2
        assert response.chat_progress.answers == {1: "OK"}
        assert response.chat_progress.chat_messages[1].text == "OK"
        assert response.current_step_data.question == "What's your name?"
        assert response.dj_calendar_link == "https://cal.example.com/dj"

        method, path, headers, _ = backend.requests[0]
        assert (method, path) == ("GET", "/client/events/7/chat-progress")
        assert headers["Authorization"] == "Bearer secret"
        assert headers["X-User-Id"] == "3"

    with_client(test, token="secret", user_id=3)


def test_submit_answer_posts_step_and_answer():
    async def test(api, backend):
        response = await api.submit_chat_answer(7, 2, "Jamie")
        assert response.next_step_data.next_step == 3
        assert backend.requests[0][3] == {"step": 2, "answer": "Jamie"}

    with_client(test)


def test_error_status_raises_api_error():
    async def test(api, backend):
        with pytest.raises(APIError) as excinfo:
            await api.get_planning(7)
        assert excinfo.value.status == 404
        assert excinfo.value.message == "Event 7 not found"

    with_client(test)


def test_malformed_response_raises_api_error():
    async def test(api, backend):
        with pytest.raises(APIError):
            await api.get_timeline(7)

    with_client(test)


def test_timeout_raises_connection_error():
    async def test(api, backend):
        with pytest.raises(APIConnectionError):
            await api.get_music_ideas(7)

    with_client(test, timeout=0.1)


def test_unreachable_backend_raises_connection_error():
    async def run():
        async with PlannerAPIClient(base_url="http://127.0.0.1:1") as api:
            with pytest.raises(APIConnectionError):
                await api.get_chat_progress(7)

    asyncio.run(run())


def test_client_saves_use_put_with_wire_names():
    async def test(api, backend):
        await api.save_planning(7, PlanningFormData(guest_count=150, ceremony_start_time="14:00"), "n")
        await api.save_music_ideas(7, MusicIdeasFormData(must_play=[Song(song_title="Perfect")]))
        await api.save_timeline(7, TimelineFormData(timeline_items=[TimelineItem(id="a", name="Ceremony")]))

        planning, music, timeline = backend.requests
        assert planning[:2] == ("PUT", "/client/events/7/planning")
        assert planning[3]["planning_data"]["guestCount"] == 150
        assert planning[3]["planning_data"]["ceremonyStartTime"] == "14:00"
        assert planning[3]["notes"] == "n"
        assert music[3]["music_ideas"]["must_play"][0]["song_title"] == "Perfect"
        assert timeline[3]["timeline_items"][0]["id"] == "a"
        assert timeline[3]["notes"] == ""

    with_client(test)


def test_admin_saves_use_post():
    async def test(api, backend):
        await api.save_planning(7, PlanningFormData())
        assert backend.requests[0][:2] == ("POST", "/events/7/planning")

    with_client(test, client_scope=False)


def test_upload_document_sends_multipart():
    async def test(api, backend):
        extracted = await api.upload_document(7, b"Guests: 120", "plan.txt", "note")
        assert extracted.extracted_fields == {"guestCount": 120}
        assert extracted.confidence_score == 75
        assert extracted.raw_text == "Guests: 120"

        sent = backend.requests[0][3]
        assert sent == {
            "event_id": "7", "filename": "plan.txt", "content": b"Guests: 120", "document_type": "note",
        }

        with pytest.raises(ParseError):
            await api.upload_document(7, b"", "empty.txt")

        with pytest.raises(ValidationError):
            await api.upload_document(7, b"x", "plan.txt", "spreadsheet")
        assert len(backend.requests) == 2

    with_client(test)


def test_parse_notes_unwraps_envelope():
    async def test(api, backend):
        extracted = await api.parse_notes(7, "Dad gives a toast")
        assert extracted.extracted_fields == {"toasts": "Dad"}
        assert backend.requests[0][3] == {"event_id": 7, "notes": "Dad gives a toast"}

    with_client(test)


def test_unwrap_envelope():
    assert unwrap_envelope({"data": {"a": 1}}) == {"a": 1}
    assert unwrap_envelope({"data": [1]}) == {"data": [1]}
    assert unwrap_envelope([1]) == [1]
