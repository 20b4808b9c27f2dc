from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from services.errors import ValidationError
from services.records import HabitDraft
from utils import DEFAULT_COLOR, day_to_epoch_ms, epoch_ms_to_datetime


def check_epoch_ms(value):
    """Reject timestamps that cannot round-trip through a local date."""
    try:
        moment = epoch_ms_to_datetime(value)
        moment.timestamp()
        day_to_epoch_ms(moment.date())
    except (ValueError, OverflowError, OSError) as e:
        raise ValueError(f"{value!r} is not a valid epoch-ms timestamp") from e
    return value


class HabitCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    description: str = ''
    color: str = DEFAULT_COLOR
    created_date: Optional[float] = Field(default=None, alias='createdDate')
    completed_dates: List[float] = Field(default_factory=list, alias='completedDates')

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Habit name is required')
        return v

    @field_validator('description', 'color', mode='before')
    @classmethod
    def none_to_default(cls, v, info):
        if v is None:
            return DEFAULT_COLOR if info.field_name == 'color' else ''
        return v

    @field_validator('created_date')
    @classmethod
    def valid_created_date(cls, v):
        return v if v is None else check_epoch_ms(v)

    @field_validator('completed_dates')
    @classmethod
    def valid_completed_dates(cls, v):
        return [check_epoch_ms(item) for item in v]

    def to_draft(self):
        created_at = epoch_ms_to_datetime(self.created_date) if self.created_date is not None else datetime.now()
        return HabitDraft(
            name=self.name,
            description=self.description,
            color=self.color,
            created_at=created_at,
            completed_days=self.completed_dates,
        )


class HabitToggle(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    habit_name: str = Field(min_length=1, alias='habitName')
    date: float


class HabitDelete(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    habit_name: str = Field(min_length=1, alias='habitName')


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


def parse(schema, payload):
    """Validate a JSON payload, raising the request-boundary ValidationError."""
    if payload is None:
        raise ValidationError('Request body must be JSON')
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        messages = []
        for issue in e.errors():
            field = '.'.join(str(part) for part in issue['loc'])
            messages.append(f"{field}: {issue['msg']}" if field else issue['msg'])
        raise ValidationError(', '.join(messages)) from e
