"""
AI Form Filler

Maps an ExtractedData result onto the planning, music ideas and timeline
forms. Every function here is pure: it returns a new form object, never
mutates its inputs, and never raises for malformed extraction data.
Entries that cannot be used (oversized titles, unparseable times) are
dropped and logged at DEBUG.
"""

import math
import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_snake

from .logging_config import get_logger
from .models import (
    MUSIC_CATEGORIES,
    ExtractedData,
    MusicIdeasFormData,
    PlanningFormData,
    Song,
    TimelineFormData,
    TimelineItem,
)

logger = get_logger(__name__)

ExtractedInput = Union[ExtractedData, Mapping[str, Any], None]

TIME_FIELDS = {"ceremony_start_time", "introductions_time"}

DEFAULT_SONG_CATEGORY = "play_if_possible"

# Titles longer than this are probably a sentence, not a song title
LONG_TITLE_THRESHOLD = 100
MAX_TITLE_WORDS = 8
DISCARD_TITLE_LENGTH = 255
FIELD_CAP = 250

_AM_PM = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)
_CLOCK = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?")
_BARE_HOUR = re.compile(r"^\d{1,2}$")
_TITLE_SPLIT = re.compile(r"^([^-]+?)(?:\s*-\s*|\s+by\s+)([^-\n]+)", re.IGNORECASE)


def normalize_time(value: Any) -> str:
    """
    Normalize a loose time string to 24-hour ``HH:MM``.

    Tries, in order: ``5pm`` / ``5:30 PM``, ``17:30`` / ``17:30:00``, then a
    bare hour (``5`` is read as 17:00, ``17`` stays 17:00). Anything else,
    including out-of-range values, returns an empty string.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return ""

    text = value.strip().lower()
    if not text:
        return ""

    match = _AM_PM.search(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        if not 1 <= hours <= 12:
            return ""
        period = match.group(3).lower()
        if period == "pm" and hours != 12:
            hours += 12
        elif period == "am" and hours == 12:
            hours = 0
    else:
        match = _CLOCK.search(text)
        if match:
            hours = int(match.group(1))
            minutes = int(match.group(2))
        elif _BARE_HOUR.match(text):
            hours = int(text)
            minutes = 0
            if hours < 12:
                hours += 12
        else:
            return ""

    if hours > 23 or minutes > 59:
        return ""
    return f"{hours:02d}:{minutes:02d}"


def extracted_fields_of(extracted: ExtractedInput) -> Dict[str, Any]:
    """Return the extracted_fields mapping of any accepted input, or {}."""
    if extracted is None:
        return {}
    if isinstance(extracted, ExtractedData):
        fields = extracted.extracted_fields
    elif isinstance(extracted, Mapping):
        fields = extracted.get("extracted_fields", extracted.get("extractedFields"))
    else:
        fields = None
    if not isinstance(fields, Mapping):
        return {}
    return dict(fields)


def _coerce_planning_value(name: str, annotation: Any, value: Any) -> Any:
    """Return the value to store for one planning field, or None to keep the current one."""
    if value is None:
        return None

    if annotation is bool:
        if isinstance(value, bool):
            return value
    elif annotation is int:
        if isinstance(value, bool):
            pass
        elif isinstance(value, int):
            return value
        elif isinstance(value, float) and math.isfinite(value):
            return int(round(value))
        elif isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    elif name in TIME_FIELDS:
        normalized = normalize_time(value)
        if not normalized and value != "":
            logger.debug(f"Unparseable time for {name}: {value!r}")
        return normalized or None
    elif isinstance(value, str):
        return value.strip() or None
    elif isinstance(value, bool):
        return "Yes" if value else "No"
    elif isinstance(value, (int, float)):
        return str(value)

    logger.debug(f"Skipping incompatible value for {name}: {value!r}")
    return None


def fill_planning_form(
    current: PlanningFormData,
    extracted: ExtractedInput,
    append_mode: bool = False,
) -> PlanningFormData:
    """
    Copy extracted planning values onto a copy of ``current``.

    Booleans and numbers are always applied (0 and False are real answers).
    Strings are applied only when non-empty after trimming. Fields missing
    from the extraction keep their current value. ``append_mode`` has no
    effect on scalar fields.
    """
    fields = extracted_fields_of(extracted)
    updates = {}

    for name, field_info in PlanningFormData.model_fields.items():
        key = field_info.alias or name
        if key in fields:
            value = fields[key]
        elif name in fields:
            value = fields[name]
        else:
            continue

        coerced = _coerce_planning_value(name, field_info.annotation, value)
        if coerced is not None:
            updates[name] = coerced

    if updates:
        logger.debug(f"Planning fields filled: {sorted(updates)}")
    return current.model_copy(update=updates)


def clean_song_title(raw_title: Any) -> Optional[str]:
    """
    Clean an extracted song title.

    Returns None when the title should be discarded as parse noise.
    """
    if not isinstance(raw_title, str):
        return None

    title = raw_title.replace("\n", " ").strip()

    if len(title) > LONG_TITLE_THRESHOLD:
        match = _TITLE_SPLIT.match(title)
        if match:
            title = match.group(1).strip()
        else:
            words = title.split(" ")
            if len(words) > MAX_TITLE_WORDS:
                title = " ".join(words[:MAX_TITLE_WORDS])

    if len(title) > DISCARD_TITLE_LENGTH:
        return None

    title = title[:FIELD_CAP].strip()
    return title or None


def _song_from_entry(entry: Any) -> Optional[Song]:
    if not isinstance(entry, Mapping):
        logger.debug(f"Skipping malformed song entry: {entry!r}")
        return None

    title = clean_song_title(entry.get("title") or entry.get("song_title") or "")
    if title is None:
        logger.debug(f"Skipping invalid song title: {entry.get('title')!r}")
        return None

    artist = entry.get("artist") or ""
    if not isinstance(artist, str):
        artist = ""
    artist = artist[:FIELD_CAP].strip()

    return Song(song_title=title, artist=artist, client_visible_title=title)


def fill_music_ideas_form(
    current: MusicIdeasFormData,
    extracted: ExtractedInput,
    append_mode: bool = False,
) -> MusicIdeasFormData:
    """
    Route extracted songs into their categories.

    When ``songs`` is present (even empty) all six categories are cleared
    first, unless ``append_mode`` is set. Category limits are not applied
    here; see ``editors.over_limit_categories``.
    """
    fields = extracted_fields_of(extracted)
    filled = current.model_copy(deep=True)

    songs = fields.get("songs")
    if not isinstance(songs, list):
        return filled

    if not append_mode:
        for category in MUSIC_CATEGORIES:
            setattr(filled, category, [])

    added = 0
    for entry in songs:
        song = _song_from_entry(entry)
        if song is None:
            continue
        category = entry.get("category")
        if category not in MUSIC_CATEGORIES:
            category = DEFAULT_SONG_CATEGORY
        getattr(filled, category).append(song)
        added += 1

    logger.debug(f"Mapped {added} of {len(songs)} extracted songs")
    return filled


class TimelineMilestone(Enum):
    """Well-known timeline rows, matched by keyword in an item's name or notes."""

    CEREMONY = ("ceremony", "ceremonyStartTime", "cocktailHourStartTime")
    COCKTAIL_HOUR = ("cocktail", "cocktailHourStartTime", "dinnerStartTime")
    DINNER = ("dinner", "dinnerStartTime", "receptionStartTime")
    RECEPTION = ("reception", "receptionStartTime", None)
    INTRODUCTIONS = ("introduction", "introductionsTime", None)

    def __init__(self, keyword: str, start_field: str, end_field: Optional[str]):
        self.keyword = keyword
        self.start_field = start_field
        self.end_field = end_field


def _field_value(fields: Mapping[str, Any], key: Optional[str]) -> Any:
    """Value under a camelCase key or its snake_case spelling."""
    if not key:
        return None
    if key in fields:
        return fields[key]
    return fields.get(to_snake(key))


def find_milestone_item(
    items: List[TimelineItem], milestone: TimelineMilestone
) -> Optional[TimelineItem]:
    """First item whose name or notes contains the milestone keyword, case-insensitively."""
    for item in items:
        if milestone.keyword in (item.name or "").lower():
            return item
        if milestone.keyword in (item.notes or "").lower():
            return item
    return None


def _unique_ids(existing: Set[str]) -> Iterator[str]:
    counter = 0
    while True:
        candidate = f"temp_{counter}"
        counter += 1
        if candidate not in existing:
            existing.add(candidate)
            yield candidate


def timeline_item_name(activity: str, start_time: str) -> str:
    """Short display name: first four words of the activity, else a time-of-day label."""
    if activity:
        words = " ".join(activity.split(" ")[:4])
        return words[:20] + "..." if len(words) > 20 else words

    hour = int(start_time.split(":")[0])
    if hour < 12:
        return "Morning Activity"
    if hour < 17:
        return "Afternoon Activity"
    return "Evening Activity"


def fill_timeline_form(
    current: TimelineFormData,
    extracted: ExtractedInput,
    append_mode: bool = False,
) -> TimelineFormData:
    """
    Build timeline items from ``timeline_times``/``timeline_activities`` and
    apply milestone start times to matching items.
    """
    fields = extracted_fields_of(extracted)
    filled = current.model_copy(deep=True)

    times = fields.get("timeline_times")
    activities = fields.get("timeline_activities")
    if not isinstance(activities, list):
        activities = []

    if isinstance(times, list) and times:
        if not append_mode:
            filled.timeline_items = []

        # Pair each time with its activity before sorting so they stay together
        entries = []
        for index, raw_time in enumerate(times):
            start_time = normalize_time(raw_time)
            if not start_time:
                logger.debug(f"Skipping unparseable timeline time: {raw_time!r}")
                continue
            activity = activities[index] if index < len(activities) else ""
            activity = activity.strip() if isinstance(activity, str) else ""
            entries.append((start_time, activity))

        entries.sort(key=lambda entry: entry[0])

        ids = _unique_ids({item.id for item in filled.timeline_items})
        base_order = len(filled.timeline_items)
        for position, (start_time, activity) in enumerate(entries):
            end_time = entries[position + 1][0] if position + 1 < len(entries) else ""
            filled.timeline_items.append(TimelineItem(
                id=next(ids),
                name=timeline_item_name(activity, start_time),
                start_time=start_time,
                end_time=end_time,
                notes=activity,
                time_offset=0,
                order=base_order + position,
            ))

    for milestone in TimelineMilestone:
        raw_start = _field_value(fields, milestone.start_field)
        if not raw_start:
            continue
        start_time = normalize_time(raw_start)
        if not start_time:
            logger.debug(f"Unparseable {milestone.start_field}: {raw_start!r}")
            continue

        item = find_milestone_item(filled.timeline_items, milestone)
        if item is None:
            continue

        item.start_time = start_time
        if milestone.end_field:
            end_time = normalize_time(_field_value(fields, milestone.end_field))
            if end_time:
                item.end_time = end_time

    for position, item in enumerate(filled.timeline_items):
        item.order = position

    return filled


def filling_summary(original: BaseModel, filled: BaseModel) -> Dict[str, Any]:
    """
    Report what a fill changed.

    Collections count as filled when they grew; scalars when they changed
    to a non-empty value.
    """
    filled_fields = []
    for name in type(filled).model_fields:
        before = getattr(original, name, None)
        after = getattr(filled, name, None)
        if isinstance(before, list) and isinstance(after, list):
            if len(after) > len(before):
                filled_fields.append(name)
        elif after != before and after not in ("", None):
            filled_fields.append(name)

    return {
        "fields_filled": len(filled_fields),
        "total_fields": len(type(original).model_fields),
        "filled_fields": filled_fields,
    }


def form_filling_confidence(extracted: ExtractedInput) -> float:
    """Confidence score (0-100) reported by the parser."""
    if isinstance(extracted, ExtractedData):
        return extracted.confidence_score
    if isinstance(extracted, Mapping):
        score = extracted.get("confidence_score", extracted.get("confidenceScore", 0))
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            return float(score)
    return 0.0
