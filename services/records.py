"""Backend-neutral habit records shared by the stores, the service and the client mirror."""
from dataclasses import dataclass, field, replace
from datetime import datetime

from utils import (
    DEFAULT_COLOR, day_key, day_to_epoch_ms, datetime_to_epoch_ms,
    epoch_ms_to_datetime, normalize_days,
)


@dataclass(frozen=True)
class OwnerContext:
    """Caller identity as the core sees it: authenticated flag plus an opaque key."""
    authenticated: bool = False
    owner_key: object = None

    @classmethod
    def anonymous(cls):
        return cls()


@dataclass
class HabitDraft:
    name: str
    description: str = ''
    color: str = DEFAULT_COLOR
    created_at: datetime = field(default_factory=datetime.now)
    completed_days: list = field(default_factory=list)

    def __post_init__(self):
        self.completed_days = normalize_days(self.completed_days)


@dataclass
class HabitRecord:
    identity: object
    name: str
    description: str
    color: str
    created_at: datetime
    completed_days: list = field(default_factory=list)

    def __post_init__(self):
        self.completed_days = normalize_days(self.completed_days)

    def is_completed(self, value):
        return day_key(value) in self.completed_days

    def copy(self):
        return replace(self, completed_days=list(self.completed_days))

    def to_dict(self):
        return {
            'id': self.identity,
            'name': self.name,
            'description': self.description,
            'color': self.color,
            'createdDate': datetime_to_epoch_ms(self.created_at),
            'completedDates': [day_to_epoch_ms(d) for d in self.completed_days],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            identity=data.get('id', data['name']),
            name=data['name'],
            description=data.get('description') or '',
            color=data.get('color') or DEFAULT_COLOR,
            created_at=epoch_ms_to_datetime(data['createdDate']),
            completed_days=data.get('completedDates') or [],
        )

    @classmethod
    def from_draft(cls, draft, identity=None):
        return cls(
            identity=identity if identity is not None else draft.name,
            name=draft.name,
            description=draft.description,
            color=draft.color,
            created_at=draft.created_at,
            completed_days=list(draft.completed_days),
        )
