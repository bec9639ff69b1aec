from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Shared type for incoming entry dates which can be a date, datetime, or ISO8601 string
EntryDateInput = Union[date, datetime, str]

DEFAULT_EMOJI = "📝"
DEFAULT_COLOR_HEX = "FF6B9D"
EMOJI_OPTIONS = ["📝", "📚", "✏️", "🎨", "🎯", "⚡", "🌟", "🎵", "🏃", "💪", "🧠", "❤️"]

TITLE_MAX_LENGTH = 200


def _parse_entry_date(value: Optional[EntryDateInput]) -> Optional[datetime]:
    """
    Internal helper to normalize an entry date into a datetime (naive allowed).
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - If value is a datetime, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


def _clean_color(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip().lstrip("#").upper()
    if len(s) != 6 or any(c not in "0123456789ABCDEF" for c in s):
        raise ValueError("color_hex must be a 6-digit hex color such as 'FF6B9D'")
    return s


# PUBLIC_INTERFACE
class EntryCreate(BaseModel):
    """
    Schema for creating a new calendar entry.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Morning run",
                "date": "2025-03-05",
                "notes": "",
                "is_completed": False,
            }
        }
    )

    title: str = Field(..., description="Short title for the entry", min_length=1, max_length=TITLE_MAX_LENGTH)
    date: datetime = Field(
        ...,
        description="Owning day. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    notes: str = Field(default="", description="Free-text note")
    is_completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce a non-empty title.
        """
        if v is None:
            raise ValueError("title is required")
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: EntryDateInput) -> Optional[datetime]:
        return _parse_entry_date(v)


# PUBLIC_INTERFACE
class EntryUpdate(BaseModel):
    """
    Schema for updating an existing entry.
    All fields are optional; only provided fields will be updated.
    """

    title: Optional[str] = Field(default=None, description="Short title for the entry", min_length=1, max_length=TITLE_MAX_LENGTH)
    date: Optional[datetime] = Field(default=None, description="Move the entry to another day")
    notes: Optional[str] = Field(default=None, description="Free-text note")
    is_completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Optional[EntryDateInput]) -> Optional[datetime]:
        return _parse_entry_date(v)


# PUBLIC_INTERFACE
class EntryOut(BaseModel):
    """
    Persisted shape of a calendar entry.
    """

    id: str = Field(..., description="Unique identifier of the entry")
    title: str = Field(..., description="Short title for the entry")
    date: datetime = Field(..., description="Owning day")
    notes: str = Field(..., description="Free-text note")
    is_completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class TemplateCreate(BaseModel):
    """
    Schema for creating an event template. Usage counters are not accepted here.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Read 20 pages", "emoji": "📚", "color_hex": "FF6B9D"}
        }
    )

    title: str = Field(..., description="Title copied into created entries", min_length=1, max_length=TITLE_MAX_LENGTH)
    emoji: str = Field(default=DEFAULT_EMOJI, description="Display glyph", min_length=1, max_length=16)
    color_hex: Optional[str] = Field(default=DEFAULT_COLOR_HEX, description="Optional hex color tag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if v is None:
            raise ValueError("title is required")
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("color_hex")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return _clean_color(v)


# PUBLIC_INTERFACE
class TemplateUpdate(BaseModel):
    """
    Schema for editing a template. Only title, emoji and color may change.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    emoji: Optional[str] = Field(default=None, min_length=1, max_length=16)
    color_hex: Optional[str] = Field(default=None)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("color_hex")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return _clean_color(v)


# PUBLIC_INTERFACE
class TemplateOut(BaseModel):
    """
    Persisted shape of an event template.
    """

    id: str = Field(..., description="Unique identifier of the template")
    title: str
    emoji: str
    color_hex: Optional[str] = None
    created_at: datetime
    last_used_at: Optional[datetime] = Field(default=None, description="Null until first application")
    usage_count: int = Field(..., ge=0)


class ApplyTemplateRequest(BaseModel):
    date: datetime = Field(..., description="Target day for the new entry")

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: EntryDateInput) -> Optional[datetime]:
        return _parse_entry_date(v)


class ApplyTemplateResult(BaseModel):
    entry: EntryOut
    template: TemplateOut


class DaySummaryOut(BaseModel):
    total_count: int
    completed_count: int
    is_empty: bool
    all_completed: bool


class DayOut(BaseModel):
    date: date
    entries: List[EntryOut]
    summary: DaySummaryOut


class SlotOut(BaseModel):
    date: date
    in_month: bool
    is_today: bool
    weekday: int = Field(..., description="0=Monday .. 6=Sunday")
    summary: DaySummaryOut


class MonthOut(BaseModel):
    year: int
    month: int
    first_weekday: int
    slots: List[SlotOut]
    star_day_count: int = Field(..., description="In-month days whose entries are all completed")
    previous_reference: date
    next_reference: date
