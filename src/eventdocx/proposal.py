"""Event values and the render data handed to the template.

:class:`Event` is built from the API's JSON representation of an event
(camelCase keys).  :class:`ProposalDataBuilder` turns it into the flat
mapping the template refers to; rich-text fields are pre-rendered to
paragraph markup and wrapped in :class:`markupsafe.Markup` so that the
template engine inserts them verbatim while escaping everything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from markupsafe import Markup

from eventdocx.budget import BudgetLine, group_budget
from eventdocx.entities import EM_DASH, html_to_plain_text
from eventdocx.hyperlinks import HyperlinkRegistry
from eventdocx.markup import MarkupBuilder

UNTIL_FINISH = "Until finish"

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


class EventDataError(ValueError):
    """Raised when an event payload does not have the expected shape."""


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------

@dataclass
class ActivityTime:
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    until_finish: bool = False


@dataclass
class CommitteeMember:
    name: str = ""
    email: str = ""


@dataclass
class RunDownItem:
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    duration_minutes: Optional[float] = None
    name: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Event:
    name: str = ""
    description: Optional[str] = None
    activity_type: str = ""
    activity: list[str] = field(default_factory=list)
    purpose: list[str] = field(default_factory=list)
    activity_date: Optional[date] = None
    activity_time: ActivityTime = field(default_factory=ActivityTime)
    activity_location: Optional[str] = None
    target_audience: Optional[int] = 0
    committee: list[CommitteeMember] = field(default_factory=list)
    run_down: list[RunDownItem] = field(default_factory=list)
    budget: list[BudgetLine] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Event:
        """Build an :class:`Event` from its API JSON form."""
        if not isinstance(data, Mapping):
            raise EventDataError("event payload must be a JSON object")

        activity_type = data.get("activityType") or ""
        if isinstance(activity_type, Mapping):
            activity_type = activity_type.get("name") or ""

        at = data.get("activityTime")
        at = at if isinstance(at, Mapping) else {}

        return cls(
            name=str(data.get("name") or ""),
            description=data.get("description"),
            activity_type=str(activity_type),
            activity=_string_list(data.get("activity"), "activity"),
            purpose=_string_list(data.get("purpose"), "purpose"),
            activity_date=_parse_date(data.get("activityDate")),
            activity_time=ActivityTime(
                start_time=at.get("startTime"),
                end_time=at.get("endTime"),
                until_finish=bool(at.get("untilFinish", False)),
            ),
            activity_location=data.get("activityLocation"),
            target_audience=data.get("targetAudience", 0),
            committee=[_committee_member(u) for u in _object_list(data.get("committee"), "committee")],
            run_down=[
                RunDownItem(
                    time_start=r.get("timeStart"),
                    time_end=r.get("timeEnd"),
                    duration_minutes=r.get("durationMinutes"),
                    name=r.get("name"),
                    description=r.get("description"),
                )
                for r in _object_list(data.get("runDown"), "runDown")
            ],
            budget=[BudgetLine.from_dict(b) for b in _object_list(data.get("budget"), "budget")],
        )


def _string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise EventDataError(f"'{key}' must be a list")
    return ["" if v is None else str(v) for v in value]


def _object_list(value: Any, key: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise EventDataError(f"'{key}' must be a list")
    items = []
    for v in value:
        if isinstance(v, Mapping):
            items.append(v)
        elif key == "committee" and isinstance(v, str):
            items.append({"name": v})
        else:
            raise EventDataError(f"'{key}' entries must be objects")
    return items


def _committee_member(user: Mapping[str, Any]) -> CommitteeMember:
    email = str(user.get("email") or "")
    name = user.get("name")
    name = str(name).strip() if name not in (None, "") else email
    return CommitteeMember(name=name, email=email)


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                raise EventDataError(f"invalid activityDate: {value!r}") from None
    raise EventDataError(f"invalid activityDate: {value!r}")


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def format_long_date(d: Optional[date]) -> str:
    """``Monday, 5 May 2025``; empty string for no date."""
    if d is None:
        return ""
    return f"{_WEEKDAYS[d.weekday()]}, {d.day} {_MONTHS[d.month - 1]} {d.year}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def numbered(lines: list[str]) -> list[str]:
    return [f"{i}. {line}" for i, line in enumerate(lines, start=1)]


# ---------------------------------------------------------------------------
# Render data
# ---------------------------------------------------------------------------

class ProposalDataBuilder:
    """Build the template context for one document generation.

    Budget descriptions go through the *registry* passed to :meth:`build`,
    which allocates one relationship id per link; callers hand the
    collected relationships to the package post-processor.
    """

    def __init__(self, markup_builder: Optional[MarkupBuilder] = None) -> None:
        self.markup = markup_builder or MarkupBuilder()

    def build(
        self, event: Event, registry: HyperlinkRegistry
    ) -> dict[str, Any]:
        at = event.activity_time
        start_time = _text(at.start_time)
        end_time = UNTIL_FINISH if at.until_finish else _text(at.end_time)
        if start_time and end_time:
            time_str = f"{start_time} - {end_time}"
        else:
            time_str = start_time or end_time
        date_str = format_long_date(event.activity_date)
        location = event.activity_location or ""

        committee = [{"name": m.name, "email": m.email} for m in event.committee]
        committee_list = numbered([m.name.strip() or EM_DASH for m in event.committee])

        run_down = []
        for r in event.run_down:
            run_down.append({
                "time": " - ".join(t for t in (r.time_start, r.time_end) if t) or EM_DASH,
                "duration": EM_DASH if r.duration_minutes is None else _text(r.duration_minutes),
                "name": r.name or EM_DASH,
                "description": html_to_plain_text(r.description),
                "description_formatted": Markup(self.markup.html_to_markup(r.description).xml),
            })

        categories = group_budget(event.budget, lambda d: Markup(registry.resolve(d)))
        budget_by_category = [
            {
                "name": c.name,
                "items": [i.as_render_data() for i in c.items],
                "total": c.total,
                "total_display": c.total_display,
            }
            for c in categories
        ]

        return {
            "event_name": event.name,
            "activity_type": event.activity_type,
            "event_description": html_to_plain_text(event.description) if event.description else "",
            "event_description_formatted": Markup(self.markup.html_to_markup(event.description).xml),
            "activity": numbered(event.activity),
            "purpose": numbered(event.purpose),
            "activity_date": date_str,
            "date": date_str,
            "activity_location": location,
            "location": location,
            "activity_start_time": start_time,
            "activity_end_time": end_time,
            "start_time": start_time,
            "end_time": end_time,
            "time": time_str,
            "target_audience": _text(event.target_audience) if event.target_audience is not None else "0",
            "committee": committee,
            "committee_list": committee_list,
            "run_down": run_down,
            "budget_by_category": budget_by_category,
        }
