"""
Turn chat answers, notes or document text into ExtractedData.

Uses OpenAI when a key is configured. Chat answers fall back to a direct
step -> field mapping when AI is unavailable or fails; free text has no
fallback and raises AIExtractionError.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from openai import AsyncOpenAI, OpenAIError

from .chat_workflow import get_step_data, map_answer_to_music_idea, map_answer_to_planning_field
from .config import config
from .exceptions import AIExtractionError
from .logging_config import get_logger
from .models import ChatMessage, ExtractedData

logger = get_logger(__name__)


EXTRACTION_SYSTEM_PROMPT = """You are an assistant for a wedding DJ company. You read wedding planning
material (chat transcripts, planner notes, timelines, emails) and extract structured data for the
DJ's planning forms.

Return ONLY a JSON object of the form:
{
  "extracted_fields": {
    "mailingAddress": "", "guestCount": 0, "coordinatorEmail": "", "photographerEmail": "",
    "videographerEmail": "", "isWedding": true,
    "ceremonyStartTime": "", "ceremonyLocation": "", "officiantName": "",
    "providingCeremonyMusic": false, "guestArrivalMusic": "", "ceremonyNotes": "",
    "providingCeremonyMicrophones": false, "whoNeedsMic": "", "ceremonyDjNotes": "",
    "uplighting": false, "uplightingColor": "", "photoBooth": false,
    "cocktailHourMusic": false, "cocktailHourLocation": "", "cocktailMusic": "",
    "introductionsTime": "", "parentsEntranceSong": "", "weddingPartyIntroSong": "",
    "coupleIntroSong": "", "weddingPartyIntroductions": "", "specialDances": "",
    "dinnerMusic": "", "dinnerStyle": "", "welcomeBy": "", "blessingBy": "", "toasts": "",
    "exitDescription": "", "spotifyPlaylists": "", "lineDances": "", "takeRequests": "",
    "musicNotes": "", "otherNotes": "",
    "cocktailHourStartTime": "", "dinnerStartTime": "", "receptionStartTime": "",
    "songs": [{"title": "", "artist": "", "category": "must_play"}],
    "timeline_times": ["4:00 PM"],
    "timeline_activities": ["Ceremony begins"]
  },
  "confidence_score": 0
}

Rules:
- Omit any field you cannot find. Never invent values.
- Song categories: must_play, play_if_possible, dedication, play_only_if_requested, do_not_play, guest_request.
- timeline_times and timeline_activities are parallel arrays.
- confidence_score is 0-100."""


CHAT_USER_PROMPT = """Please analyze this wedding planning conversation and extract all the relevant information:

{context}"""

NOTES_USER_PROMPT = """Please extract the wedding planning details from these notes:

{notes}"""


_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def build_conversation_context(messages: Iterable[ChatMessage], answers: Mapping[int, str]) -> str:
    """Plain-text transcript followed by a per-step answer summary."""
    lines = ["Wedding Planning Chat Conversation:", ""]
    for message in messages:
        speaker = "Bot" if message.is_bot else "User"
        lines.append(f"{speaker}: {message.text}")

    lines.append("")
    lines.append("User Answers Summary:")
    for step in sorted(answers):
        step_data = get_step_data(int(step))
        if step_data is not None:
            lines.append(f"Step {step} ({step_data.question}): {answers[step]}")

    return "\n".join(lines) + "\n"


def parse_ai_json(content: Optional[str]) -> Dict[str, Any]:
    """
    Pull the extracted_fields object out of a model reply.

    Raises:
        AIExtractionError: no JSON object could be parsed
    """
    if not content:
        raise AIExtractionError("Empty response from model")

    cleaned = _FENCE.sub("", content.strip())
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise AIExtractionError("No JSON object in model response")

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise AIExtractionError(f"Invalid JSON in model response: {e}")

    if not isinstance(parsed, dict):
        raise AIExtractionError("Model response is not a JSON object")

    fields = parsed.get("extracted_fields", parsed)
    if not isinstance(fields, dict):
        raise AIExtractionError("extracted_fields is not an object")
    return {"extracted_fields": fields, "confidence_score": parsed.get("confidence_score", 0)}


# Raw chat answers that land directly on one planning field
_DIRECT_PLANNING_FIELDS = {
    "ceremony_time": "ceremonyStartTime",
    "ceremony_location": "ceremonyLocation",
    "ceremony_songs": "ceremonyNotes",
    "cocktail_hour_location": "cocktailHourLocation",
    "cocktail_hour_spotify": "cocktailMusic",
    "introduction_text": "weddingPartyIntroductions",
    "group_introduction_order": "weddingPartyIntroductions",
    "introduction_song": "coupleIntroSong",
    "group_introduction_song": "weddingPartyIntroSong",
    "parents_grandparents_entrance_song": "parentsEntranceSong",
    "welcome_speaker": "welcomeBy",
    "welcome_speaker_name": "welcomeBy",
    "blessing_speaker": "blessingBy",
    "blessing_speaker_name": "blessingBy",
    "dinner_style": "dinnerStyle",
    "dinner_playlist_spotify": "dinnerMusic",
    "dinner_music_preferences": "dinnerMusic",
    "toast_speakers": "toasts",
    "dancing_playlist_spotify": "spotifyPlaylists",
    "take_requests": "takeRequests",
    "line_dances": "lineDances",
    "readers_singers_song": "ceremonyDjNotes",
}

# Raw answers collected into the specialDances text, in this order
_SPECIAL_DANCE_LABELS = (
    ("first_dance_song", "First dance"),
    ("first_dance_fade_point", "First dance fade"),
    ("first_parent_dance_person", "First parent dance"),
    ("first_parent_dance_song", "First parent dance song"),
    ("first_parent_dance_fade_point", "First parent dance fade"),
    ("second_parent_dance_person", "Second parent dance"),
    ("second_parent_dance_song", "Second parent dance song"),
    ("second_parent_dance_fade_point", "Second parent dance fade"),
    ("cake_cutting_song", "Cake cutting"),
    ("anniversary_dance_song", "Anniversary dance"),
    ("bouquet_toss_song", "Bouquet toss"),
    ("garter_toss_song", "Garter toss"),
    ("private_last_dance_song", "Private last dance"),
)

_OTHER_NOTES_LABELS = (
    ("client_name", "Client"),
    ("fiance_name", "Fiance"),
    ("wedding_date", "Wedding date"),
)

_OTHER_COMMENTS_LABELS = (
    ("wedding_planner_contact", "Wedding planner"),
    ("last_song_preference", "Last song of the night"),
    ("do_not_play_songs", "Do not play"),
)

# Music idea groups -> song category; playlists are links, not songs
_MUSIC_GROUP_CATEGORIES = {
    "ceremony": "must_play",
    "reception": "must_play",
    "preferences": "do_not_play",
}
_PLAYLIST_TYPES = {"spotify_playlist", "dinner_playlist", "dancing_playlist"}


def _labelled_lines(raw: Mapping[str, str], labels) -> str:
    return "\n".join(f"{label}: {raw[key]}" for key, label in labels if raw.get(key))


def extract_from_answers(answers: Mapping[Any, str]) -> ExtractedData:
    """Direct mapping of chat answers to extracted fields, no AI involved."""
    raw: Dict[str, str] = {}
    songs: List[Dict[str, str]] = []

    for step in sorted(answers, key=int):
        answer = (answers[step] or "").strip()
        if not answer:
            continue

        planning = map_answer_to_planning_field(int(step), answer)
        if planning:
            raw[planning["field_name"]] = answer

        music = map_answer_to_music_idea(int(step), answer)
        if music and music["type"] not in _PLAYLIST_TYPES:
            category = _MUSIC_GROUP_CATEGORIES.get(music["category"], "play_if_possible")
            songs.append({"title": answer, "artist": "", "category": category})

    fields: Dict[str, Any] = {}
    for raw_name, form_field in _DIRECT_PLANNING_FIELDS.items():
        if raw.get(raw_name):
            fields[form_field] = raw[raw_name]

    if "ceremonyLocation" not in fields and raw.get("wedding_location"):
        fields["ceremonyLocation"] = raw["wedding_location"]

    special_dances = _labelled_lines(raw, _SPECIAL_DANCE_LABELS)
    if special_dances:
        fields["specialDances"] = special_dances
    other_notes = _labelled_lines(raw, _OTHER_NOTES_LABELS)
    if other_notes:
        fields["otherNotes"] = other_notes
    other_comments = _labelled_lines(raw, _OTHER_COMMENTS_LABELS)
    if other_comments:
        fields["otherComments"] = other_comments

    if raw.get("ceremony_time"):
        fields["ceremonyCeremonyAudio"] = True
        fields["providingCeremonyMusic"] = True
    if raw.get("cocktail_hour_spotify"):
        fields["cocktailHourMusic"] = True

    if songs:
        fields["songs"] = songs

    logger.info(f"Fallback extraction mapped {len(fields)} fields and {len(songs)} songs")
    return ExtractedData(
        extracted_fields=fields,
        confidence_score=100.0,
        raw_text="",
        analysis_timestamp=datetime.now(timezone.utc).isoformat(),
    )


class ChatFormExtractor:
    """AI extraction with a deterministic fallback for chat answers."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.api_key = api_key if api_key is not None else config.openai_api_key
        self.model = model or config.openai_model
        self._client = client

    @property
    def ai_enabled(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _complete(self, user_prompt: str, raw_text: str) -> ExtractedData:
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.1,
            max_tokens=4000
        )
        parsed = parse_ai_json(response.choices[0].message.content)
        score = parsed["confidence_score"]
        if not isinstance(score, (int, float)) or isinstance(score, bool):
            score = 0
        return ExtractedData(
            extracted_fields=parsed["extracted_fields"],
            confidence_score=max(0.0, min(100.0, float(score))),
            raw_text=raw_text,
            analysis_timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def extract_from_chat(
        self, messages: Iterable[ChatMessage], answers: Mapping[Any, str]
    ) -> ExtractedData:
        """Extract from a chat transcript, falling back to the direct answer mapping."""
        messages = list(messages)
        if not self.ai_enabled:
            logger.warning("OpenAI API key not configured, using fallback mapping")
            return extract_from_answers(answers)

        context = build_conversation_context(messages, answers)
        logger.info(f"Parsing chat conversation with {self.model} ({len(context)} chars)")
        try:
            return await self._complete(CHAT_USER_PROMPT.format(context=context), context)
        except (OpenAIError, AIExtractionError) as e:
            logger.error(f"AI chat parsing failed, using fallback: {e}")
            return extract_from_answers(answers)

    async def extract_from_text(self, text: str) -> ExtractedData:
        """
        Extract from free text (notes or a document).

        Raises:
            AIExtractionError: AI is not configured or the call failed
        """
        if not self.ai_enabled:
            raise AIExtractionError("AI parsing is not configured (set OPENAI_API_KEY)")

        logger.info(f"Parsing {len(text)} characters of text with {self.model}")
        try:
            return await self._complete(NOTES_USER_PROMPT.format(notes=text), text)
        except OpenAIError as e:
            logger.error(f"AI text parsing failed: {e}")
            raise AIExtractionError(f"AI parsing failed: {e}", model=self.model)
