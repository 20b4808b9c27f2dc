"""Caller-side mirror of the habit collection with optimistic updates.

Every mutation applies the change locally, then awaits the backend. A failed
call undoes only its own edit and re-raises: toggle puts back the day's prior
membership, create drops the entry it appended, delete reinserts the habit at
its old position. Edits confirmed in the meantime are kept. Requests are not
serialized: two rapid toggles on the same day race, and toggle is a flip, so
callers that need at-most-once delivery must deduplicate themselves.
"""
import asyncio
from abc import ABC, abstractmethod
from datetime import date

import requests

from services.calendar_service import aggregate, month_start, next_month, previous_month
from services.errors import HabitError, NotFound, StorageError, ValidationError, error_for_status
from services.records import HabitRecord
from utils import (
    color_to_hex, hex_to_color, day_key, day_to_epoch_ms, datetime_to_epoch_ms, flip_day,
)

DEFAULT_TIMEOUT = 10


class HabitTransport(ABC):

    @abstractmethod
    async def list_habits(self):
        ...

    @abstractmethod
    async def create_habit(self, draft):
        ...

    @abstractmethod
    async def toggle(self, habit_name, day):
        ...

    @abstractmethod
    async def delete_habit(self, habit_name):
        ...


def draft_payload(draft):
    return {
        'name': draft.name,
        'description': draft.description,
        'color': draft.color,
        'createdDate': datetime_to_epoch_ms(draft.created_at),
        'completedDates': [day_to_epoch_ms(d) for d in draft.completed_days],
    }


class HttpHabitTransport(HabitTransport):
    """Talks to the /habits endpoints; blocking requests calls run off the event loop."""

    def __init__(self, base_url, session=None, timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, payload=None):
        try:
            response = self.session.request(method, f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise StorageError(f"Request failed: {e}") from e
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not response.ok or not body.get('success'):
            raise error_for_status(response.status_code, body.get('error'))
        return body

    async def _call(self, method, path, payload=None):
        return await asyncio.to_thread(self._request, method, path, payload)

    async def list_habits(self):
        body = await self._call('GET', '/habits')
        return [HabitRecord.from_dict(h) for h in body.get('habits', [])]

    async def create_habit(self, draft):
        body = await self._call('POST', '/habits', draft_payload(draft))
        data = body.get('data')
        return HabitRecord.from_dict(data) if data else None

    async def toggle(self, habit_name, day):
        body = await self._call('PATCH', '/habits', {'habitName': habit_name, 'date': day_to_epoch_ms(day)})
        return bool(body.get('completed'))

    async def delete_habit(self, habit_name):
        await self._call('DELETE', '/habits', {'habitName': habit_name})


class ClientSyncController:

    def __init__(self, transport, habits=None, today=None, first_weekday=6):
        self.transport = transport
        self._habits = [h.copy() for h in habits or []]
        self.current_month = month_start(today or date.today())
        self.first_weekday = first_weekday

    @property
    def habits(self):
        return [h.copy() for h in self._habits]

    def _index(self, name):
        for i, habit in enumerate(self._habits):
            if habit.name == name:
                return i
        raise NotFound(f"Habit '{name}' not found")

    def _find(self, name):
        for habit in self._habits:
            if habit.name == name:
                return habit
        return None

    def _set_membership(self, name, day, present):
        # Looked up again by name: the collection may have changed while a call was in flight.
        habit = self._find(name)
        if habit is None:
            return
        days = [d for d in habit.completed_days if d != day]
        if present:
            days.append(day)
        habit.completed_days = sorted(days)

    async def refresh(self):
        self._habits = await self.transport.list_habits()
        return self.habits

    async def toggle(self, name, when):
        day = day_key(when)
        habit = self._habits[self._index(name)]
        was_completed = day in habit.completed_days
        habit.completed_days, completed = flip_day(habit.completed_days, day)
        try:
            confirmed = await self.transport.toggle(name, day)
        except HabitError:
            self._set_membership(name, day, was_completed)
            raise
        if confirmed != completed:
            # Server saw a different prior state; adopt its answer for this day.
            self._set_membership(name, day, confirmed)
        return confirmed

    async def delete(self, name):
        index = self._index(name)
        removed = self._habits.pop(index)
        try:
            await self.transport.delete_habit(name)
        except HabitError:
            if self._find(name) is None:
                self._habits.insert(min(index, len(self._habits)), removed)
            raise

    async def create(self, draft):
        if any(h.name == draft.name for h in self._habits):
            raise ValidationError(f"Habit '{draft.name}' already exists")
        local = HabitRecord.from_draft(draft)
        local.color = hex_to_color(color_to_hex(draft.color))
        self._habits.append(local)
        try:
            created = await self.transport.create_habit(draft)
        except HabitError:
            self._habits = [h for h in self._habits if h is not local]
            raise
        if created is not None:
            self._habits[self._index(draft.name)] = created
        return created

    def grid(self):
        return aggregate(self._habits, self.current_month.year, self.current_month.month,
                         first_weekday=self.first_weekday)

    def previous_month(self):
        self.current_month = previous_month(self.current_month)
        return self.current_month

    def next_month(self):
        self.current_month = next_month(self.current_month)
        return self.current_month
