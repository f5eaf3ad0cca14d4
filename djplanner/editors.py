"""
Planning, music ideas and timeline editors with debounced autosave.

A burst of edits collapses into one save fired ``delay`` seconds after the
last edit. A save already in flight is never cancelled: a newer tick waits
for it and then saves the latest data (last edit wins at the debounce
boundary).
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .callbacks import invoke_callback
from .config import config
from .exceptions import CategoryLimitError, PlannerError, ValidationError
from .form_store import Domain, FormStore
from .ingestion import AIOverrides, SaveStatusTracker
from .logging_config import get_logger
from .models import (
    MUSIC_CATEGORIES,
    MUSIC_CATEGORY_LIMITS,
    MusicIdeasFormData,
    PlanningFormData,
    Song,
    TimelineFormData,
    TimelineItem,
)

logger = get_logger(__name__)

DEFAULT_TIMELINE_SECTIONS = (
    "Music On (Ceremony Prelude) (DJ Start Time)",
    "Ceremony",
    "Cocktail Hour",
    "Introductions",
    "Special Dances",
    "Dinner",
    "Party Time",
    "Cake Cutting",
    "Bouquet/Garter Toss",
    "Anniversary Dance",
    "Last Song (Music Off) (DJ End Time)",
)


def default_timeline_sections() -> TimelineFormData:
    """The standard wedding timeline rows with empty times."""
    return TimelineFormData(timeline_items=[
        TimelineItem(id=f"default-{index}", name=name, order=index)
        for index, name in enumerate(DEFAULT_TIMELINE_SECTIONS)
    ])


def over_limit_categories(form: MusicIdeasFormData) -> Dict[str, Tuple[int, int]]:
    """Categories holding more songs than allowed, as {category: (count, limit)}."""
    over = {}
    for category in MUSIC_CATEGORIES:
        limit = MUSIC_CATEGORY_LIMITS[category]
        count = len(getattr(form, category))
        if limit is not None and count > limit:
            over[category] = (count, limit)
    return over


class DebouncedAutosave:
    """Collapse rapid edits into a single save."""

    def __init__(
        self,
        save: Callable[[Any], Awaitable[Any]],
        delay: float = config.AUTOSAVE_DELAY,
        on_error: Optional[Callable[[Exception], Any]] = None,
    ):
        self._save = save
        self.delay = delay
        self.on_error = on_error
        self.save_count = 0
        self._pending: Any = None
        self._has_pending = False
        self._timer: Optional[asyncio.Task] = None
        self._flushes: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def schedule(self, data: Any) -> None:
        """Record the latest data and restart the debounce timer."""
        self._pending = data
        self._has_pending = True
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._tick())

    async def _tick(self) -> None:
        await asyncio.sleep(self.delay)
        # Saves run in their own task so a later schedule() only cancels timers
        task = asyncio.get_running_loop().create_task(self._flush())
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)

    async def _flush(self) -> None:
        async with self._lock:
            if not self._has_pending:
                return
            data = self._pending
            self._pending = None
            self._has_pending = False
            try:
                await self._save(data)
                self.save_count += 1
            except Exception as e:
                logger.error(f"Autosave failed: {e}")
                await invoke_callback(self.on_error, e)

    async def flush(self) -> None:
        """Save pending data now, skipping the remaining delay."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        await self._flush()

    async def drain(self) -> None:
        """Wait until the timer and every save it started have finished."""
        while True:
            tasks = [t for t in self._flushes if not t.done()]
            if self._timer is not None and not self._timer.done():
                tasks.append(self._timer)
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)


class FormEditor:
    """Shared load/edit/save plumbing for one domain."""

    domain: Domain = Domain.PLANNING

    def __init__(
        self,
        store: FormStore,
        overrides: Optional[AIOverrides] = None,
        status: Optional[SaveStatusTracker] = None,
        delay: float = config.AUTOSAVE_DELAY,
    ):
        self.store = store
        self.overrides = overrides
        self.status = status
        self.form: Optional[BaseModel] = None
        self.autosave = DebouncedAutosave(self._save, delay)

    async def load(self) -> BaseModel:
        """Current form, preferring freshly AI-filled values over the cache."""
        override = self.overrides.get(self.domain) if self.overrides else None
        if override is not None:
            self.form = override
        else:
            self.form = await self.store.get(self.domain)
        return self.form

    async def _save(self, form: BaseModel) -> None:
        if self.status:
            self.status.saving()
        try:
            await self.store.save(self.domain, form)
        except PlannerError as e:
            logger.error(f"Error saving {self.domain.value}: {e.message}")
            if self.status:
                self.status.failed()
            return
        if self.overrides:
            self.overrides.clear(self.domain)
        if self.status:
            self.status.succeeded()

    def _require_form(self) -> BaseModel:
        if self.form is None:
            raise ValidationError(f"{self.domain.value} form is not loaded")
        return self.form

    def _changed(self, form: BaseModel) -> BaseModel:
        self.form = form
        self.autosave.schedule(form)
        return form


class PlanningEditor(FormEditor):
    domain = Domain.PLANNING

    def update_field(self, name: str, value: Any) -> PlanningFormData:
        form = self._require_form()
        if name not in PlanningFormData.model_fields:
            raise ValidationError(f"Unknown planning field: {name}", field=name)

        data = form.model_dump()
        data[name] = value
        try:
            updated = PlanningFormData.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid value for {name}: {e}", field=name)
        return self._changed(updated)


class MusicIdeasEditor(FormEditor):
    domain = Domain.MUSIC

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in MUSIC_CATEGORIES:
            raise ValidationError(f"Unknown music category: {category}", field="category")

    def add_song(self, category: str, song: Song) -> MusicIdeasFormData:
        """
        Append a song, enforcing the category limit.

        Raises:
            CategoryLimitError: the category is already full
        """
        self._check_category(category)
        form = self._require_form().model_copy(deep=True)
        songs = getattr(form, category)
        limit = MUSIC_CATEGORY_LIMITS[category]
        if limit is not None and len(songs) >= limit:
            raise CategoryLimitError(category, limit)

        if not song.client_visible_title:
            song = song.model_copy(update={"client_visible_title": song.song_title})
        songs.append(song)
        return self._changed(form)

    def update_song(self, category: str, index: int, song: Song) -> MusicIdeasFormData:
        self._check_category(category)
        form = self._require_form().model_copy(deep=True)
        songs = getattr(form, category)
        if not 0 <= index < len(songs):
            raise ValidationError(f"No song at position {index} in {category}", field="index")
        songs[index] = song
        return self._changed(form)

    def remove_song(self, category: str, index: int) -> MusicIdeasFormData:
        self._check_category(category)
        form = self._require_form().model_copy(deep=True)
        songs = getattr(form, category)
        if not 0 <= index < len(songs):
            raise ValidationError(f"No song at position {index} in {category}", field="index")
        del songs[index]
        return self._changed(form)

    def over_limit(self) -> Dict[str, Tuple[int, int]]:
        return over_limit_categories(self._require_form())


def renumber(items: List[TimelineItem]) -> List[TimelineItem]:
    """Reset ``order`` to each item's position."""
    for position, item in enumerate(items):
        item.order = position
    return items


class TimelineEditor(FormEditor):
    domain = Domain.TIMELINE

    async def load(self) -> TimelineFormData:
        form = await super().load()
        if not form.timeline_items:
            self.form = default_timeline_sections()
        return self.form

    def _index_of(self, items: List[TimelineItem], item_id: str) -> int:
        for index, item in enumerate(items):
            if item.id == item_id:
                return index
        raise ValidationError(f"No timeline item {item_id}", field="id")

    def add_item(
        self,
        name: str = "",
        start_time: str = "",
        end_time: str = "",
        notes: str = "",
    ) -> TimelineFormData:
        form = self._require_form().model_copy(deep=True)
        form.timeline_items.append(TimelineItem(
            id=f"item-{uuid.uuid4().hex[:8]}",
            name=name,
            start_time=start_time,
            end_time=end_time,
            notes=notes,
        ))
        renumber(form.timeline_items)
        return self._changed(form)

    def update_item(self, item_id: str, **changes: Any) -> TimelineFormData:
        form = self._require_form().model_copy(deep=True)
        index = self._index_of(form.timeline_items, item_id)
        changes.pop("id", None)
        changes.pop("order", None)
        data = form.timeline_items[index].model_dump()
        data.update(changes)
        try:
            form.timeline_items[index] = TimelineItem.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid timeline item: {e}", field=item_id)
        return self._changed(form)

    def remove_item(self, item_id: str) -> TimelineFormData:
        form = self._require_form().model_copy(deep=True)
        del form.timeline_items[self._index_of(form.timeline_items, item_id)]
        renumber(form.timeline_items)
        return self._changed(form)

    def move_item(self, item_id: str, new_index: int) -> TimelineFormData:
        form = self._require_form().model_copy(deep=True)
        items = form.timeline_items
        item = items.pop(self._index_of(items, item_id))
        new_index = max(0, min(new_index, len(items)))
        items.insert(new_index, item)
        renumber(items)
        return self._changed(form)
