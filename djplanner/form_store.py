"""
Per-domain form cache.

Holds the last fetched planning, music ideas and timeline forms for one
event. Each domain is fetched, saved and invalidated on its own; the three
share nothing.
"""

import asyncio
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from .exceptions import APIError
from .logging_config import get_logger
from .models import MusicIdeasFormData, PlanningFormData, TimelineFormData

logger = get_logger(__name__)


class Domain(str, Enum):
    PLANNING = "planning"
    MUSIC = "music"
    TIMELINE = "timeline"


def default_form(domain: Domain) -> BaseModel:
    """All-empty form used when the backend has nothing stored yet."""
    if domain is Domain.PLANNING:
        return PlanningFormData()
    if domain is Domain.MUSIC:
        return MusicIdeasFormData()
    return TimelineFormData()


class FormStore:
    """Cached reads and writes of one event's three forms."""

    def __init__(self, api, event_id: int):
        self.api = api
        self.event_id = event_id
        self._forms: Dict[Domain, BaseModel] = {}
        self._notes: Dict[Domain, str] = {}

    def is_cached(self, domain: Domain) -> bool:
        return domain in self._forms

    def cached(self, domain: Domain) -> Optional[BaseModel]:
        return self._forms.get(domain)

    def notes(self, domain: Domain) -> str:
        return self._notes.get(domain, "")

    async def _load(self, domain: Domain):
        if domain is Domain.PLANNING:
            response = await self.api.get_planning(self.event_id)
            return response.planning_data, response.notes
        if domain is Domain.MUSIC:
            response = await self.api.get_music_ideas(self.event_id)
            return response.music_ideas, response.notes
        response = await self.api.get_timeline(self.event_id)
        return response.timeline_data, response.notes

    async def fetch(self, domain: Domain) -> BaseModel:
        """
        Fetch a domain from the backend and cache it.

        A 404 yields the all-empty default. Other errors propagate.
        """
        try:
            form, notes = await self._load(domain)
        except APIError as e:
            if e.status != 404:
                raise
            logger.info(f"No {domain.value} form stored for event {self.event_id}, using defaults")
            form, notes = default_form(domain), ""

        self._forms[domain] = form
        self._notes[domain] = notes or ""
        return form

    async def get(self, domain: Domain) -> BaseModel:
        """Cached form, fetching it first if needed."""
        if domain in self._forms:
            return self._forms[domain]
        return await self.fetch(domain)

    async def save(self, domain: Domain, form: BaseModel, notes: Optional[str] = None) -> None:
        """Persist a form, then cache it as the current value."""
        if notes is None:
            notes = self.notes(domain)

        if domain is Domain.PLANNING:
            await self.api.save_planning(self.event_id, form, notes)
        elif domain is Domain.MUSIC:
            await self.api.save_music_ideas(self.event_id, form, notes)
        else:
            await self.api.save_timeline(self.event_id, form, notes)

        self._forms[domain] = form
        self._notes[domain] = notes

    def invalidate(self, domain: Domain) -> None:
        self._forms.pop(domain, None)

    def invalidate_all(self) -> None:
        for domain in Domain:
            self.invalidate(domain)

    async def refetch_all(self) -> List[Domain]:
        """
        Refetch every domain concurrently.

        Returns:
            Domains that failed to refetch
        """
        domains = list(Domain)
        results = await asyncio.gather(
            *[self.fetch(domain) for domain in domains],
            return_exceptions=True
        )

        failed = []
        for domain, result in zip(domains, results):
            if isinstance(result, Exception):
                logger.error(f"Refetch of {domain.value} failed: {result}")
                failed.append(domain)
        return failed
