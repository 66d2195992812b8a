"""Event data model - templates, recurrence rules and instances."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum

from .dates import format_date, format_time, parse_date, parse_time
from .errors import InvalidEvent, InvalidRecurrenceRule, InvalidTimeRange

# Lead times offered when creating an event, in minutes.
NOTIFICATION_CHOICES = (1, 10, 60, 120, 1440)
DEFAULT_NOTIFICATION_MINUTES = 10


class Category(Enum):
    WORK = "work"
    PERSONAL = "personal"
    FAMILY = "family"
    OTHER = "other"


class Frequency(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


_UNITS = {
    Frequency.DAILY: "day",
    Frequency.WEEKLY: "week",
    Frequency.MONTHLY: "month",
    Frequency.YEARLY: "year",
}


@dataclass(frozen=True)
class RecurrenceRule:
    """How an event repeats: a frequency tag plus interval and optional end date."""

    frequency: Frequency = Frequency.NONE
    interval: int = 1
    end_date: date | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency is not Frequency.NONE

    def validate(self, anchor: date) -> None:
        """Check the rule against the series' first date."""
        if not self.is_recurring:
            return
        if self.interval <= 0:
            raise InvalidRecurrenceRule(f"Interval must be positive, got {self.interval}")
        if self.end_date is not None and self.end_date < anchor:
            raise InvalidRecurrenceRule(
                f"End date {format_date(self.end_date)} is before {format_date(anchor)}"
            )

    def describe(self) -> str:
        """Human-readable summary, e.g. "every 2 weeks until 2024-12-31"."""
        if not self.is_recurring:
            return "does not repeat"
        unit = _UNITS[self.frequency]
        text = f"every {unit}" if self.interval == 1 else f"every {self.interval} {unit}s"
        if self.end_date:
            text += f" until {format_date(self.end_date)}"
        return text

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency.value,
            "interval": self.interval,
            "end_date": format_date(self.end_date) if self.end_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "RecurrenceRule":
        if not data:
            return cls()
        end = data.get("end_date")
        return cls(
            frequency=Frequency(data.get("frequency", "none")),
            interval=int(data.get("interval", 1)),
            end_date=parse_date(end) if end else None,
        )


@dataclass
class EventTemplate:
    """A user-authored event before expansion into dated instances."""

    title: str
    date: date
    start_time: time
    end_time: time
    description: str = ""
    location: str = ""
    category: Category = Category.WORK
    recurrence: RecurrenceRule = field(default_factory=RecurrenceRule)
    notification_minutes: int = DEFAULT_NOTIFICATION_MINUTES

    def validate(self) -> None:
        """Raise on the first invalid field. Never mutates anything."""
        validate_fields(self.title, self.start_time, self.end_time, self.notification_minutes)
        self.recurrence.validate(self.date)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "date": format_date(self.date),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "description": self.description,
            "location": self.location,
            "category": self.category.value,
            "recurrence": self.recurrence.to_dict(),
            "notification_minutes": self.notification_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventTemplate":
        try:
            return cls(
                title=data["title"],
                date=parse_date(data["date"]),
                start_time=parse_time(data["start_time"]),
                end_time=parse_time(data["end_time"]),
                description=data.get("description", ""),
                location=data.get("location", ""),
                category=Category(data.get("category", Category.WORK.value)),
                recurrence=RecurrenceRule.from_dict(data.get("recurrence")),
                notification_minutes=int(
                    data.get("notification_minutes", DEFAULT_NOTIFICATION_MINUTES)
                ),
            )
        except KeyError as e:
            raise InvalidEvent(f"Missing event field: {e.args[0]}") from e


@dataclass
class EventInstance:
    """A single dated occurrence, standalone or part of a series."""

    id: str
    title: str
    date: date
    start_time: time
    end_time: time
    description: str = ""
    location: str = ""
    category: Category = Category.WORK
    recurrence: RecurrenceRule = field(default_factory=RecurrenceRule)
    notification_minutes: int = DEFAULT_NOTIFICATION_MINUTES
    # Identifies the template that produced this instance; not owned by it.
    series_id: str | None = None

    @property
    def start(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.date, self.end_time)

    @property
    def is_recurring(self) -> bool:
        return self.series_id is not None

    def format_time(self) -> str:
        """Format the event time span for display."""
        return f"{format_time(self.start_time)}-{format_time(self.end_time)}"

    def validate(self) -> None:
        validate_fields(self.title, self.start_time, self.end_time, self.notification_minutes)

    def to_template(self) -> EventTemplate:
        """Template anchored on this instance's date."""
        return EventTemplate(
            title=self.title,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            description=self.description,
            location=self.location,
            category=self.category,
            recurrence=self.recurrence,
            notification_minutes=self.notification_minutes,
        )

    def with_fields(self, template: EventTemplate) -> "EventInstance":
        """Copy of this instance carrying the template's fields, same id and series."""
        return replace(
            self,
            title=template.title,
            date=template.date,
            start_time=template.start_time,
            end_time=template.end_time,
            description=template.description,
            location=template.location,
            category=template.category,
            notification_minutes=template.notification_minutes,
        )

    @classmethod
    def from_template(
        cls,
        template: EventTemplate,
        event_id: str,
        on_date: date | None = None,
        series_id: str | None = None,
    ) -> "EventInstance":
        return cls(
            id=event_id,
            title=template.title,
            date=on_date or template.date,
            start_time=template.start_time,
            end_time=template.end_time,
            description=template.description,
            location=template.location,
            category=template.category,
            recurrence=template.recurrence,
            notification_minutes=template.notification_minutes,
            series_id=series_id,
        )

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_template().to_dict(), "series_id": self.series_id}

    @classmethod
    def from_dict(cls, data: dict) -> "EventInstance":
        """Create an instance from its stored dict form."""
        if "id" not in data:
            raise InvalidEvent("Missing event field: id")
        template = EventTemplate.from_dict(data)
        return cls.from_template(template, data["id"], series_id=data.get("series_id"))


def validate_fields(title: str, start_time: time, end_time: time, notification_minutes: int) -> None:
    if not title or not title.strip():
        raise InvalidEvent("Title is required")
    if end_time <= start_time:
        raise InvalidTimeRange(
            f"End time {format_time(end_time)} must be after start time {format_time(start_time)}"
        )
    if notification_minutes < 0:
        raise InvalidEvent(f"Notification lead time cannot be negative: {notification_minutes}")
