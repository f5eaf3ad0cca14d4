"""Test the reference backend end to end with a temporary database"""
import io

import pytest
from docx import Document as DocxDocument
from fastapi.testclient import TestClient

from djplanner.chat.messages import COMPLETION_PHRASE
from djplanner.models import ExtractedData
from servers.app import app
from servers.routers import documents as documents_router


class FakeExtractor:
    """Returns canned extractions and remembers the text it was given."""

    def __init__(self):
        self.texts = []

    async def extract_from_text(self, text):
        self.texts.append(text)
        return ExtractedData(
            extracted_fields={"guestCount": 99, "songs": [{"title": "Shout", "category": "must_play"}]},
            confidence_score=70,
            raw_text=text,
        )


def make_pdf(*lines):
    """Single-page PDF with one line of Helvetica text per argument."""
    text_ops = b" ".join(
        b"BT /F1 12 Tf 72 %d Td (%s) Tj ET" % (720 - 20 * n, line.encode("latin-1"))
        for n, line in enumerate(lines)
    )
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(text_ops) + text_ops + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_at = len(pdf)
    pdf += b"xref\n0 %d\n" % (len(objects) + 1)
    pdf += b"0000000000 65535 f \n"
    pdf += b"".join(b"%010d 00000 n \n" % offset for offset in offsets)
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    pdf += b"startxref\n%d\n" % xref_at + b"%%EOF\n"
    return pdf


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DJPLANNER_DB_PATH", str(tmp_path / "planner.db"))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return TestClient(app)


def create_event(client, link="https://cal.example.com/dj"):
    response = client.post("/events", json={"name": "Smith Wedding", "dj_calendar_link": link})
    assert response.status_code == 200
    return response.json()["event_id"]


def answer(client, event_id, step, text):
    response = client.post(f"/client/events/{event_id}/chat-progress", json={"step": step, "answer": text})
    assert response.status_code == 200, response.text
    return response.json()


# ----------------------------------------------------------------------
# Chat progress
# ----------------------------------------------------------------------

def test_chat_progress_is_created_with_first_question(client):
    event_id = create_event(client)

    body = client.get(f"/client/events/{event_id}/chat-progress").json()
    assert body["chat_progress"]["current_step"] == 1
    assert body["current_step_data"]["options"] == ["OK", "Hello"]
    assert body["dj_calendar_link"] == "https://cal.example.com/dj"
    assert not body["is_completed"]
    assert len(body["chat_progress"]["chat_messages"]) == 1

    again = client.get(f"/client/events/{event_id}/chat-progress").json()
    assert again["chat_progress"]["chat_messages"] == body["chat_progress"]["chat_messages"]


def test_full_chat_completes_and_fills_forms(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress")

    answer(client, event_id, 1, "OK")
    answer(client, event_id, 2, "Jamie")
    answer(client, event_id, 3, "Alex")
    answer(client, event_id, 4, "2026-09-12")
    answer(client, event_id, 5, "The Barn")
    body = answer(client, event_id, 6, "Yes")
    assert body["chat_progress"]["current_step"] == 7
    answer(client, event_id, 7, "No")
    body = answer(client, event_id, 9, "Upload Timeline")
    assert body["next_step_data"]["question"].startswith("OK, can I have the wedding planner")
    body = answer(client, event_id, 10, "planner@example.com")

    assert body["chat_progress"]["current_step"] == 99
    assert body["next_step_data"]["options"] == ["Done"]
    assert body["chat_progress"]["chat_messages"][-1]["text"] == COMPLETION_PHRASE

    shown = client.get(f"/client/events/{event_id}/chat-progress").json()
    texts = [m["text"] for m in shown["chat_progress"]["chat_messages"]]
    assert texts.count(COMPLETION_PHRASE) == 1

    body = answer(client, event_id, 99, "Done")
    assert body["is_completed"]
    assert body["chat_progress"]["current_step"] == 99
    assert body["next_step_data"] is None
    assert body["chat_progress"]["answers"]["10"] == "planner@example.com"

    planning = client.get(f"/client/events/{event_id}/planning").json()
    assert planning["planning_data"]["ceremonyLocation"] == "The Barn"
    assert "Client: Jamie" in planning["planning_data"]["otherNotes"]
    assert "planner@example.com" in planning["planning_data"]["otherComments"]
    assert planning["completion_percentage"] > 0

    filled = client.post(f"/client/events/{event_id}/chat-progress/fill-forms").json()
    assert filled["success"]
    assert filled["data"]["planning_data"]["ceremonyLocation"] == "The Barn"


def test_fill_forms_requires_completed_chat(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress")

    response = client.post(f"/client/events/{event_id}/chat-progress/fill-forms")
    assert response.status_code == 400
    assert response.json() == {
        "success": False, "error": "Chat is not completed yet", "error_code": "CHAT_NOT_COMPLETED",
    }


def test_answer_before_progress_exists_is_404(client):
    event_id = create_event(client)
    response = client.post(f"/client/events/{event_id}/chat-progress", json={"step": 1, "answer": "OK"})
    assert response.status_code == 404
    assert response.json()["error_code"] == "CHAT_PROGRESS_NOT_FOUND"


def test_repeated_answer_is_rejected_and_not_stored_twice(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress")

    answer(client, event_id, 1, "OK")
    response = client.post(f"/client/events/{event_id}/chat-progress", json={"step": 1, "answer": "OK"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"

    progress = client.get(f"/client/events/{event_id}/chat-progress").json()["chat_progress"]
    texts = [(m["is_bot"], m["text"]) for m in progress["chat_messages"]]
    assert texts.count((False, "OK")) == 1
    assert texts.count((True, "What's your name?")) == 1
    assert progress["current_step"] == 2


def test_stale_step_does_not_move_progress_back(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress")
    for step, text in ((1, "OK"), (2, "Jamie"), (3, "Alex"), (4, "2026-09-12"), (5, "The Barn")):
        answer(client, event_id, step, text)

    response = client.post(f"/client/events/{event_id}/chat-progress", json={"step": 2, "answer": "Ann"})
    assert response.status_code == 400

    progress = client.get(f"/client/events/{event_id}/chat-progress").json()["chat_progress"]
    assert progress["current_step"] == 6
    assert progress["answers"]["2"] == "Jamie"


def test_completed_chat_takes_no_more_answers(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress")
    for step, text in ((1, "OK"), (2, "Jamie"), (3, "Alex"), (4, "2026-09-12"), (5, "The Barn"),
                       (6, "Yes"), (7, "Yes"), (8, "Upload Timeline"), (99, "Done")):
        answer(client, event_id, step, text)

    response = client.post(f"/client/events/{event_id}/chat-progress", json={"step": 99, "answer": "Done"})
    assert response.status_code == 400
    assert client.get(f"/client/events/{event_id}/chat-progress").json()["is_completed"]


def test_progress_is_per_user(client):
    event_id = create_event(client)
    client.get(f"/client/events/{event_id}/chat-progress", headers={"X-User-Id": "1"})
    answer(client, event_id, 1, "OK")

    other = client.get(f"/client/events/{event_id}/chat-progress", headers={"X-User-Id": "2"}).json()
    assert other["chat_progress"]["current_step"] == 1
    assert other["chat_progress"]["user_id"] == 2


def test_unknown_event_is_404(client):
    response = client.get("/client/events/999/chat-progress")
    assert response.status_code == 404
    assert response.json()["error_code"] == "EVENT_NOT_FOUND"
    assert client.get("/events/999/planning").status_code == 404


# ----------------------------------------------------------------------
# Forms
# ----------------------------------------------------------------------

def test_forms_default_then_round_trip(client):
    event_id = create_event(client)

    planning = client.get(f"/client/events/{event_id}/planning").json()
    assert planning["planning_data"]["guestCount"] == 0
    assert planning["completion_percentage"] == 0

    response = client.put(f"/client/events/{event_id}/planning", json={
        "planning_data": {"guestCount": 150, "ceremonyStartTime": "14:00"},
        "notes": "call the venue",
    })
    assert response.json()["success"]

    planning = client.get(f"/events/{event_id}/planning").json()
    assert planning["planning_data"]["guestCount"] == 150
    assert planning["planning_data"]["ceremonyStartTime"] == "14:00"
    assert planning["notes"] == "call the venue"

    client.post(f"/events/{event_id}/music-ideas", json={
        "music_ideas": {"must_play": [{"song_title": "Perfect", "artist": "Ed Sheeran"}]},
    })
    music = client.get(f"/client/events/{event_id}/music-ideas").json()
    assert music["total_songs"] == 1
    assert music["music_ideas"]["must_play"][0]["artist"] == "Ed Sheeran"

    client.put(f"/client/events/{event_id}/timeline", json={
        "timeline_items": [{"id": "a", "name": "Ceremony", "start_time": "14:00"}],
    })
    timeline = client.get(f"/events/{event_id}/timeline").json()
    assert timeline["total_items"] == 1
    assert timeline["timeline_data"]["timeline_items"][0]["name"] == "Ceremony"


def test_invalid_form_body_is_rejected(client):
    event_id = create_event(client)
    response = client.put(f"/client/events/{event_id}/planning", json={"planning_data": {"guestCount": "many"}})
    assert response.status_code == 422


# ----------------------------------------------------------------------
# Documents and notes
# ----------------------------------------------------------------------

def test_notes_without_ai_key_fail_cleanly(client):
    event_id = create_event(client)

    response = client.post(f"/client/events/{event_id}/documents/parse-notes", json={"notes": "Dad toasts"})
    assert response.status_code == 502
    assert response.json()["error_code"] == "AI_EXTRACTION_ERROR"

    response = client.post(f"/events/{event_id}/documents/parse-notes", json={"notes": "  "})
    assert response.status_code == 400


def test_document_upload(client, monkeypatch):
    extractor = FakeExtractor()
    monkeypatch.setattr(documents_router.document_service, "extractor", extractor)
    event_id = create_event(client)

    response = client.post(
        f"/client/events/{event_id}/documents/upload",
        files={"document": ("timeline.txt", b"4pm ceremony\n5pm cocktails", "text/plain")},
        data={"document_type": "note"},
    )
    body = response.json()
    assert response.status_code == 200, body
    assert body["parsed_data"]["extracted_fields"]["guestCount"] == 99
    assert extractor.texts == ["4pm ceremony\n5pm cocktails"]

    docx_file = io.BytesIO()
    doc = DocxDocument()
    doc.add_paragraph("Guest count: 99")
    doc.add_paragraph("")
    doc.add_paragraph("First dance: Perfect")
    doc.save(docx_file)
    response = client.post(
        f"/events/{event_id}/documents/upload",
        files={"document": ("plan.docx", docx_file.getvalue(), "application/octet-stream")},
    )
    assert response.status_code == 200
    assert extractor.texts[-1] == "Guest count: 99\n\nFirst dance: Perfect"

    response = client.post(
        f"/events/{event_id}/documents/upload",
        files={"document": ("timeline.pdf", make_pdf("4pm ceremony"), "application/pdf")},
        data={"document_type": "pdf"},
    )
    assert response.status_code == 200, response.json()
    assert response.json()["document_type"] == "pdf"
    assert "4pm ceremony" in extractor.texts[-1]

    response = client.post(
        f"/client/events/{event_id}/documents/upload",
        files={"document": ("scan.pdf", b"%PDF-1.7 truncated", "application/pdf")},
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "PARSE_ERROR"

    response = client.post(
        f"/client/events/{event_id}/documents/upload",
        files={"document": ("x.txt", b"text", "text/plain")},
        data={"document_type": "spreadsheet"},
    )
    assert response.status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_pdf_without_text_is_rejected(client, monkeypatch):
    extractor = FakeExtractor()
    monkeypatch.setattr(documents_router.document_service, "extractor", extractor)
    event_id = create_event(client)

    response = client.post(
        f"/events/{event_id}/documents/upload",
        files={"document": ("blank.pdf", make_pdf(), "application/pdf")},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "Document contains no readable text"
    assert extractor.texts == []
