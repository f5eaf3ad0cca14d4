"""
Pydantic models for planning forms, chat progress and AI extraction results.

Planning fields use snake_case attributes and camelCase on the wire
(``guest_count`` <-> ``guestCount``), so dump them with ``by_alias=True``.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PlanningFormData(BaseModel):
    """Client planning questionnaire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # General information
    mailing_address: str = ""
    guest_count: int = 0
    coordinator_email: str = ""
    photographer_email: str = ""
    videographer_email: str = ""
    is_wedding: bool = True

    # Ceremony
    ceremony_ceremony_audio: bool = False
    ceremony_start_time: str = ""
    ceremony_location: str = ""
    officiant_name: str = ""
    providing_ceremony_music: bool = False
    guest_arrival_music: str = ""
    ceremony_notes: str = ""
    providing_ceremony_microphones: bool = False
    who_needs_mic: str = ""
    ceremony_dj_notes: str = ""

    # Add-ons
    uplighting: bool = False
    uplighting_color: str = ""
    uplighting_notes: str = ""
    photo_booth: bool = False
    photo_booth_location: str = ""
    logo_design: str = ""
    photo_text: str = ""
    photo_color_scheme: str = ""
    led_ring_color: str = ""
    backdrop: str = ""
    photo_email_location: str = ""

    # Cocktail hour
    cocktail_hour_music: bool = False
    cocktail_hour_location: str = ""
    cocktail_music: str = ""
    cocktail_notes: str = ""

    # Introductions
    introductions_time: str = ""
    parents_entrance_song: str = ""
    wedding_party_intro_song: str = ""
    couple_intro_song: str = ""
    wedding_party_introductions: str = ""
    special_dances: str = ""
    other_notes: str = ""

    # Reception
    dinner_music: str = ""
    dinner_style: str = ""
    welcome_by: str = ""
    blessing_by: str = ""
    toasts: str = ""
    reception_notes: str = ""
    exit_description: str = ""
    other_comments: str = ""

    # Music notes
    spotify_playlists: str = ""
    line_dances: str = ""
    take_requests: str = ""
    music_notes: str = ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Song(BaseModel):
    """A single song entry in a music category."""
    song_title: str = ""
    artist: str = ""
    client_visible_title: str = ""


MUSIC_CATEGORIES = (
    "must_play",
    "play_if_possible",
    "dedication",
    "play_only_if_requested",
    "do_not_play",
    "guest_request",
)

# None means unlimited
MUSIC_CATEGORY_LIMITS: Dict[str, Optional[int]] = {
    "must_play": 60,
    "play_if_possible": 30,
    "dedication": 10,
    "play_only_if_requested": 5,
    "do_not_play": 10,
    "guest_request": None,
}


class MusicIdeasFormData(BaseModel):
    """Six fixed song categories."""
    must_play: List[Song] = []
    play_if_possible: List[Song] = []
    dedication: List[Song] = []
    play_only_if_requested: List[Song] = []
    do_not_play: List[Song] = []
    guest_request: List[Song] = []

    def total_songs(self) -> int:
        return sum(len(getattr(self, category)) for category in MUSIC_CATEGORIES)


class TimelineItem(BaseModel):
    """One row of the event timeline."""
    id: str
    name: str = ""
    start_time: str = ""
    end_time: str = ""
    notes: str = ""
    time_offset: int = 0
    order: int = 0


class TimelineFormData(BaseModel):
    """Ordered event timeline."""
    timeline_items: List[TimelineItem] = []


class ExtractedData(BaseModel):
    """Result of an AI parse of a document, notes, or chat answers.

    Accepts camelCase or snake_case keys, always dumps snake_case.
    """
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
    )

    extracted_fields: Dict[str, Any] = {}
    confidence_score: float = 0.0
    raw_text: Optional[str] = ""
    analysis_timestamp: Optional[str] = None


class ChatMessage(BaseModel):
    """A chat bubble, bot or user."""
    id: str
    text: str
    is_bot: bool
    timestamp: datetime
    options: Optional[List[str]] = None


InputType = Literal["text", "options", "upload", "date", "time", "link"]


class StepData(BaseModel):
    """Question shown at one chat step."""
    question: str
    options: Optional[List[str]] = None
    input_type: InputType = "text"
    next_step: Optional[int] = None


class ChatProgress(BaseModel):
    """Server-side record of a client's walk through the chat questionnaire."""
    id: Optional[int] = None
    event_id: int
    user_id: Optional[int] = None
    current_step: int = 1
    answers: Dict[int, str] = {}
    chat_messages: List[ChatMessage] = []
    is_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChatProgressResponse(BaseModel):
    """Body of GET /client/events/{id}/chat-progress."""
    chat_progress: ChatProgress
    current_step_data: Optional[StepData] = None
    is_completed: bool = False
    dj_calendar_link: Optional[str] = None


class AnswerResponse(BaseModel):
    """Body of POST /client/events/{id}/chat-progress."""
    chat_progress: ChatProgress
    next_step_data: Optional[StepData] = None
    is_completed: bool = False


class PlanningResponse(BaseModel):
    planning_data: PlanningFormData = Field(default_factory=PlanningFormData)
    notes: str = ""
    completion_percentage: int = 0


class MusicIdeasResponse(BaseModel):
    music_ideas: MusicIdeasFormData = Field(default_factory=MusicIdeasFormData)
    notes: str = ""
    total_songs: int = 0


class TimelineResponse(BaseModel):
    timeline_data: TimelineFormData = Field(default_factory=TimelineFormData)
    notes: str = ""
    total_items: int = 0
