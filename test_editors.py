"""Test the form editors and debounced autosave"""
import asyncio

import pytest

from djplanner.editors import (
    DEFAULT_TIMELINE_SECTIONS,
    DebouncedAutosave,
    MusicIdeasEditor,
    PlanningEditor,
    TimelineEditor,
    over_limit_categories,
)
from djplanner.exceptions import CategoryLimitError, ValidationError
from djplanner.form_store import Domain, FormStore
from djplanner.ingestion import AIOverrides, SaveStatus, SaveStatusTracker
from djplanner.models import (
    MusicIdeasFormData,
    MusicIdeasResponse,
    PlanningFormData,
    PlanningResponse,
    Song,
    TimelineFormData,
    TimelineResponse,
)


# ----------------------------------------------------------------------
# Debounced autosave
# ----------------------------------------------------------------------

def test_burst_of_edits_saves_once_with_latest_data():
    async def run():
        saved = []

        async def save(data):
            saved.append(data)

        autosave = DebouncedAutosave(save, delay=0.05)
        for value in range(5):
            autosave.schedule(value)
            await asyncio.sleep(0.01)

        assert saved == []
        await autosave.drain()
        assert saved == [4]
        assert autosave.save_count == 1
        assert not autosave.has_pending

    asyncio.run(run())


def test_in_flight_save_is_not_cancelled():
    async def run():
        started = []
        finished = []

        async def save(data):
            started.append(data)
            await asyncio.sleep(0.1)
            finished.append(data)

        autosave = DebouncedAutosave(save, delay=0.02)
        autosave.schedule("first")
        await asyncio.sleep(0.05)
        assert started == ["first"]

        autosave.schedule("second")
        await autosave.drain()

        assert finished == ["first", "second"]
        assert autosave.save_count == 2

    asyncio.run(run())


def test_flush_saves_immediately():
    async def run():
        saved = []

        async def save(data):
            saved.append(data)

        autosave = DebouncedAutosave(save, delay=10)
        autosave.schedule("now")
        await autosave.flush()
        assert saved == ["now"]

        await autosave.flush()
        assert saved == ["now"]

    asyncio.run(run())


def test_save_errors_reach_on_error():
    async def run():
        errors = []

        async def save(data):
            raise RuntimeError("disk full")

        autosave = DebouncedAutosave(save, delay=0.01, on_error=errors.append)
        autosave.schedule("x")
        await autosave.drain()

        assert [str(e) for e in errors] == ["disk full"]
        assert autosave.save_count == 0

    asyncio.run(run())


# ----------------------------------------------------------------------
# Editors
# ----------------------------------------------------------------------

class FakeFormsAPI:
    def __init__(self):
        self.planning = PlanningFormData(guest_count=50)
        self.music = MusicIdeasFormData()
        self.timeline = TimelineFormData()
        self.saves = []

    async def get_planning(self, event_id):
        return PlanningResponse(planning_data=self.planning)

    async def get_music_ideas(self, event_id):
        return MusicIdeasResponse(music_ideas=self.music)

    async def get_timeline(self, event_id):
        return TimelineResponse(timeline_data=self.timeline)

    async def save_planning(self, event_id, planning, notes=""):
        self.saves.append("planning")
        self.planning = planning

    async def save_music_ideas(self, event_id, music, notes=""):
        self.saves.append("music")
        self.music = music

    async def save_timeline(self, event_id, timeline, notes=""):
        self.saves.append("timeline")
        self.timeline = timeline


def test_planning_editor_autosaves_and_clears_override():
    async def run():
        api = FakeFormsAPI()
        overrides = AIOverrides()
        overrides.set(Domain.PLANNING, PlanningFormData(guest_count=150))
        status = SaveStatusTracker()

        editor = PlanningEditor(FormStore(api, 7), overrides, status, delay=0.01)
        form = await editor.load()
        assert form.guest_count == 150

        editor.update_field("toasts", "Best man")
        editor.update_field("guest_count", "160")
        await editor.autosave.drain()

        assert api.saves == ["planning"]
        assert api.planning.guest_count == 160
        assert api.planning.toasts == "Best man"
        assert Domain.PLANNING not in overrides
        assert status.status is SaveStatus.SUCCESS

    asyncio.run(run())


def test_planning_editor_rejects_bad_fields():
    async def run():
        editor = PlanningEditor(FormStore(FakeFormsAPI(), 7), delay=0.01)
        with pytest.raises(ValidationError):
            editor.update_field("guest_count", 5)

        await editor.load()
        with pytest.raises(ValidationError):
            editor.update_field("favorite_color", "blue")
        with pytest.raises(ValidationError):
            editor.update_field("guest_count", "a lot")

    asyncio.run(run())


def test_music_editor_enforces_category_limits():
    async def run():
        editor = MusicIdeasEditor(FormStore(FakeFormsAPI(), 7), delay=0.01)
        await editor.load()

        for n in range(5):
            editor.add_song("play_only_if_requested", Song(song_title=f"Song {n}"))
        with pytest.raises(CategoryLimitError) as excinfo:
            editor.add_song("play_only_if_requested", Song(song_title="One too many"))
        assert "up to 5 songs" in excinfo.value.message

        for n in range(20):
            editor.add_song("guest_request", Song(song_title=f"Request {n}"))
        assert len(editor.form.guest_request) == 20

        assert editor.form.play_only_if_requested[0].client_visible_title == "Song 0"
        assert editor.over_limit() == {}

        with pytest.raises(ValidationError):
            editor.add_song("party_anthems", Song(song_title="x"))

        await editor.autosave.drain()

    asyncio.run(run())


def test_music_editor_update_and_remove():
    async def run():
        editor = MusicIdeasEditor(FormStore(FakeFormsAPI(), 7), delay=0.01)
        await editor.load()
        editor.add_song("must_play", Song(song_title="A"))
        editor.add_song("must_play", Song(song_title="B"))

        editor.update_song("must_play", 0, Song(song_title="A2", artist="X"))
        editor.remove_song("must_play", 1)
        assert [s.song_title for s in editor.form.must_play] == ["A2"]

        with pytest.raises(ValidationError):
            editor.remove_song("must_play", 3)

        await editor.autosave.drain()

    asyncio.run(run())


def test_over_limit_categories_flags_mapper_output():
    form = MusicIdeasFormData(do_not_play=[Song(song_title=str(n)) for n in range(11)])
    assert over_limit_categories(form) == {"do_not_play": (11, 10)}


def test_timeline_editor_defaults_and_ordering():
    async def run():
        api = FakeFormsAPI()
        editor = TimelineEditor(FormStore(api, 7), delay=0.01)
        form = await editor.load()

        assert [i.name for i in form.timeline_items] == list(DEFAULT_TIMELINE_SECTIONS)

        editor.add_item(name="Sparkler exit", start_time="22:45")
        items = editor.form.timeline_items
        assert items[-1].name == "Sparkler exit"
        assert [i.order for i in items] == list(range(len(items)))

        new_id = items[-1].id
        editor.move_item(new_id, 0)
        assert editor.form.timeline_items[0].id == new_id

        editor.remove_item("default-1")
        editor.update_item(new_id, notes="Outside", order=99)
        items = editor.form.timeline_items
        assert [i.order for i in items] == list(range(len(items)))
        assert "default-1" not in {i.id for i in items}
        assert items[0].notes == "Outside"
        assert items[0].order == 0

        with pytest.raises(ValidationError):
            editor.remove_item("missing")

        await editor.autosave.drain()
        assert api.saves == ["timeline"]
        assert api.timeline == editor.form

    asyncio.run(run())
