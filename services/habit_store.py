"""Habit persistence over two interchangeable backends.

``FileBackedStore`` keeps one JSON document for anonymous/demo use.
``RelationalStore`` keeps normalized Habit and HabitCompletion rows per owner.
``select_store`` picks one from the caller identity so call sites never branch on it.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod

from flask import current_app
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db, Habit, HabitCompletion
from services.errors import DuplicateHabit, NotFound, StorageError
from services.records import HabitRecord
from utils import (
    color_to_hex, hex_to_color, day_key, day_to_epoch_ms, datetime_to_epoch_ms,
    epoch_ms_to_datetime, flip_day, normalize_days,
)

TOGGLE_ATTEMPTS = 3


class HabitStore(ABC):

    @abstractmethod
    def list(self, owner):
        ...

    @abstractmethod
    def create(self, owner, draft):
        ...

    @abstractmethod
    def delete(self, owner, name):
        ...

    @abstractmethod
    def toggle(self, owner, name, day):
        """Flip ``day`` for the named habit and return the new membership."""


class FileBackedStore(HabitStore):
    """Single JSON document shared by every anonymous caller.

    Each operation reads the whole document, mutates it in memory and writes it
    back with an atomic replace. There is no locking between writers: the last
    write wins and a concurrent reader may see the previous document. This
    store is the unauthenticated fallback and assumes a single writer.
    """

    def __init__(self, path):
        self.path = os.fspath(path)

    def _read(self):
        if not os.path.exists(self.path):
            return {'habits': []}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read habits file: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get('habits'), list):
            raise StorageError('Habits file is malformed')
        for entry in data['habits']:
            if not isinstance(entry, dict) or not isinstance(entry.get('name'), str):
                raise StorageError('Habits file is malformed')
            try:
                self._to_record(entry)
            except (ValueError, TypeError, KeyError, AttributeError, OverflowError, OSError) as e:
                raise StorageError(f"Habits file has a bad entry for '{entry['name']}': {e}") from e
        return data

    def _write(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.habits-', suffix='.tmp', dir=directory)
        except OSError as e:
            raise StorageError(f"Could not write habits file: {e}") from e
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Could not write habits file: {e}") from e

    @staticmethod
    def _find(data, name):
        for entry in data['habits']:
            if entry.get('name') == name:
                return entry
        return None

    @staticmethod
    def _to_record(entry):
        return HabitRecord(
            identity=entry['name'],
            name=entry['name'],
            description=entry.get('description') or '',
            color=hex_to_color(entry.get('color')),
            created_at=epoch_ms_to_datetime(entry.get('createdDate') or 0),
            completed_days=entry.get('completedDates') or [],
        )

    def list(self, owner):
        return [self._to_record(entry) for entry in self._read()['habits']]

    def create(self, owner, draft):
        data = self._read()
        if self._find(data, draft.name) is not None:
            raise DuplicateHabit(f"Habit '{draft.name}' already exists")
        entry = {
            'name': draft.name,
            'description': draft.description,
            'color': color_to_hex(draft.color),
            'createdDate': datetime_to_epoch_ms(draft.created_at),
            'completedDates': [day_to_epoch_ms(d) for d in normalize_days(draft.completed_days)],
        }
        data['habits'].append(entry)
        self._write(data)
        return self._to_record(entry)

    def delete(self, owner, name):
        data = self._read()
        entry = self._find(data, name)
        if entry is None:
            raise NotFound(f"Habit '{name}' not found")
        data['habits'].remove(entry)
        self._write(data)

    def toggle(self, owner, name, day):
        data = self._read()
        entry = self._find(data, name)
        if entry is None:
            raise NotFound(f"Habit '{name}' not found")
        days, completed = flip_day(entry.get('completedDates') or [], day)
        entry['completedDates'] = [day_to_epoch_ms(d) for d in days]
        self._write(data)
        return completed


class RelationalStore(HabitStore):
    """Owner-scoped Habit/HabitCompletion rows behind a SQLAlchemy session."""

    def __init__(self, session=None):
        self.session = session or db.session

    def _get_habit(self, owner, name):
        habit = self.session.execute(
            db.select(Habit).filter_by(user_id=owner.owner_key, name=name)
        ).scalar_one_or_none()
        if habit is None:
            raise NotFound(f"Habit '{name}' not found")
        return habit

    def _to_record(self, habit):
        return HabitRecord(
            identity=habit.id,
            name=habit.name,
            description=habit.description or '',
            color=hex_to_color(habit.color),
            created_at=habit.created_at,
            completed_days=[c.date for c in habit.completions],
        )

    def list(self, owner):
        try:
            habits = self.session.execute(
                db.select(Habit).filter_by(user_id=owner.owner_key).order_by(Habit.created_at, Habit.id)
            ).scalars().all()
            return [self._to_record(h) for h in habits]
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not list habits: {e}") from e

    def create(self, owner, draft):
        habit = Habit(
            name=draft.name,
            description=draft.description,
            color=color_to_hex(draft.color),
            created_at=draft.created_at,
            user_id=owner.owner_key,
        )
        for d in normalize_days(draft.completed_days):
            habit.completions.append(HabitCompletion(date=d))
        self.session.add(habit)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateHabit(f"Habit '{draft.name}' already exists") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not create habit: {e}") from e
        return self._to_record(habit)

    def delete(self, owner, name):
        try:
            habit = self._get_habit(owner, name)
            # Children first, parent second, one commit: readers never see orphans.
            self.session.execute(
                delete(HabitCompletion).where(HabitCompletion.habit_id == habit.id)
            )
            self.session.expire(habit, ['completions'])
            self.session.delete(habit)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Could not delete habit: {e}") from e

    def toggle(self, owner, name, day):
        day = day_key(day)
        for attempt in range(TOGGLE_ATTEMPTS):
            try:
                habit_id = self._get_habit(owner, name).id
                removed = self.session.execute(
                    delete(HabitCompletion).where(
                        HabitCompletion.habit_id == habit_id,
                        HabitCompletion.date == day,
                    )
                ).rowcount
                if removed:
                    self.session.commit()
                    return False
                self.session.add(HabitCompletion(habit_id=habit_id, date=day))
                self.session.commit()
                return True
            except IntegrityError:
                # A concurrent toggle inserted the same day first; retry so it is removed.
                self.session.rollback()
                current_app.logger.info("Toggle race on %s/%s, retrying (%d)", name, day, attempt + 1)
            except SQLAlchemyError as e:
                self.session.rollback()
                raise StorageError(f"Could not toggle habit: {e}") from e
        raise StorageError(f"Could not toggle habit '{name}': too many concurrent updates")


def select_store(owner, file_path):
    if owner.authenticated:
        return RelationalStore()
    return FileBackedStore(file_path)
