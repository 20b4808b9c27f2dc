from contextlib import contextmanager
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from services.errors import HabitError, StorageError, ValidationError
from utils import day_key


@dataclass(frozen=True)
class ToggleResult:
    completed: bool

    def to_dict(self):
        return {'success': True, 'completed': self.completed}


class CompletionToggleService:
    """Orchestrates habit mutations against whichever store is active.

    Nothing is cached: every call reads the store's current state.
    """

    def __init__(self, store):
        self.store = store

    @contextmanager
    def _translate(self, action):
        try:
            yield
        except HabitError:
            raise
        except (SQLAlchemyError, OSError) as e:
            current_app.logger.exception("Storage failure during %s", action)
            raise StorageError(f"Failed to {action}") from e

    def toggle(self, owner, habit_name, when):
        if not habit_name or not habit_name.strip():
            raise ValidationError('habitName is required')
        try:
            day = day_key(when)
        except (ValueError, OverflowError, OSError) as e:
            raise ValidationError(f"Invalid date: {when!r}") from e

        with self._translate('toggle habit'):
            completed = self.store.toggle(owner, habit_name, day)
        current_app.logger.info("Toggled %s on %s -> %s", habit_name, day.isoformat(), completed)
        return ToggleResult(completed=completed)

    def list_habits(self, owner):
        with self._translate('list habits'):
            return self.store.list(owner)

    def create_habit(self, owner, draft):
        with self._translate('add habit'):
            record = self.store.create(owner, draft)
        current_app.logger.info("Created habit %s", record.name)
        return record

    def delete_habit(self, owner, habit_name):
        if not habit_name or not habit_name.strip():
            raise ValidationError('habitName is required')
        with self._translate('delete habit'):
            self.store.delete(owner, habit_name)
        current_app.logger.info("Deleted habit %s", habit_name)
