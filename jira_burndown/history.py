"""Work item history reconstruction for Jira Burndown.

This module turns the (unordered) changelog of a single Jira issue into a
time-ordered history, and evaluates that history as a completion timeline:
the fraction of the item that was complete as of any calendar date.
"""

import datetime
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple

from .exceptions import TimestampParseError, ValueParseError

logger = logging.getLogger(__name__)

# Jira changelog timestamps, e.g. 2024-01-15T09:30:00.000+0000
JIRA_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

# `strptime` alone also accepts `Z`, `+00:00` and 1 to 6 digit fractions
JIRA_TIMESTAMP_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}[+-]\d{4}"
)

STATUS_FIELD = "status"

# Percent complete values are recorded on a 0-100 scale by default
DEFAULT_PERCENT_COMPLETE_SCALE = 100.0


def parse_timestamp(value, key=None) -> datetime.datetime:
    """Parse a Jira changelog timestamp into a timezone-aware datetime.

    Raises `TimestampParseError` if `value` is not in the fixed
    millisecond-precision offset format Jira uses for changelog entries.
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value

    error = TimestampParseError(
        f"Could not parse timestamp `{value}` for issue `{key}`",
        key=key,
        value=value,
    )

    if not isinstance(value, str) or not JIRA_TIMESTAMP_PATTERN.fullmatch(value):
        raise error

    try:
        return datetime.datetime.strptime(value, JIRA_TIMESTAMP_FORMAT)
    except ValueError:
        raise error from None


def _get_tolerant_attr(obj, camel_case_name, snake_case_name, default=None):
    # Jira PropertyHolders use camelCase, test doubles may use snake_case
    return getattr(obj, camel_case_name, getattr(obj, snake_case_name, default))


def _extract_name(value, attribute="name"):
    if value is None:
        return None
    if hasattr(value, attribute):
        return getattr(value, attribute)
    if isinstance(value, dict):
        return value.get(attribute)
    return str(value)


@dataclass(frozen=True)
class ChangeEvent:
    """A single field change recorded in an issue's changelog."""

    field_name: str
    from_value: Optional[str]
    to_value: Optional[str]
    occurred_at: datetime.datetime


@dataclass(frozen=True)
class WorkItemHistory:
    """An issue key and its change events in ascending time order.

    The snapshot attributes (summary, type, status, assignee) describe the
    issue as it is now; they are carried for the renderers and play no part
    in reconstruction.
    """

    key: str
    events: Tuple[ChangeEvent, ...] = ()
    size: float = 0.0
    summary: Optional[str] = None
    issue_type: Optional[str] = None
    status: Optional[str] = None
    assignee: Optional[str] = None
    url: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_events(cls, key, events: Iterable[ChangeEvent], **snapshot):
        """Build a history from events in any order.

        Events are sorted by `occurred_at`. `sorted()` is stable, so events
        sharing a timestamp keep their input order.
        """
        normalized = [
            replace(event, occurred_at=parse_timestamp(event.occurred_at, key))
            for event in events
        ]
        return cls(
            key=key,
            events=tuple(sorted(normalized, key=lambda e: e.occurred_at)),
            **snapshot,
        )

    @classmethod
    def from_issue(cls, issue, size=0.0, url=None):
        """Build a history from a Jira issue fetched with `expand=changelog`.

        Every changelog timestamp must parse; a single bad timestamp raises
        `TimestampParseError` rather than yielding a partial history.
        """
        events = []
        changelog = getattr(issue, "changelog", None)
        histories = getattr(changelog, "histories", None) or []

        for history in histories:
            occurred_at = parse_timestamp(history.created, issue.key)
            for item in history.items:
                events.append(
                    ChangeEvent(
                        field_name=item.field,
                        from_value=_get_tolerant_attr(item, "fromString", "from_string"),
                        to_value=_get_tolerant_attr(item, "toString", "to_string"),
                        occurred_at=occurred_at,
                    )
                )

        fields = issue.fields
        logger.debug("Issue %s has %d change events", issue.key, len(events))

        return cls.from_events(
            issue.key,
            events,
            size=size,
            summary=getattr(fields, "summary", None),
            issue_type=_extract_name(getattr(fields, "issuetype", None)),
            status=_extract_name(getattr(fields, "status", None)),
            assignee=_extract_name(
                getattr(fields, "assignee", None), attribute="displayName"
            ),
            url=url,
        )


def _end_of_day(date) -> datetime.datetime:
    """The instant the day after `date` begins, at midnight UTC."""
    if isinstance(date, datetime.datetime):
        date = date.date()
    return datetime.datetime.combine(
        date + datetime.timedelta(days=1),
        datetime.time.min,
        tzinfo=datetime.timezone.utc,
    )


class CompletionTimeline:
    """The completion fraction of one work item as a function of date.

    Each call to `completion_at()` replays the events up to the end of the
    requested day, so calls are independent of each other and of order.
    """

    def __init__(
        self,
        history: WorkItemHistory,
        percent_complete_field: str,
        done_statuses,
        percent_complete_scale: float = DEFAULT_PERCENT_COMPLETE_SCALE,
    ):
        self.history = history
        self.percent_complete_field = percent_complete_field
        self.done_statuses = frozenset(done_statuses)
        self.percent_complete_scale = percent_complete_scale

    def __repr__(self):
        return (
            f"<CompletionTimeline key={self.history.key} "
            f"events={len(self.history.events)}>"
        )

    def _parse_percent(self, value) -> float:
        try:
            return float(value) / self.percent_complete_scale
        except (TypeError, ValueError):
            raise ValueParseError(
                f"Could not convert value `{value}` of field "
                f"`{self.percent_complete_field}` on issue "
                f"`{self.history.key}` to a number",
                key=self.history.key,
                field=self.percent_complete_field,
                value=value,
            ) from None

    def completion_at(self, date) -> float:
        """Return the completion fraction, between 0 and 1, as of `date`.

        Everything that happened on or before the calendar day `date` counts.
        Percent complete values are folded with a running maximum, and any
        change of status to a done status forces the result to 1.0.
        """
        boundary = _end_of_day(date)

        completion = 0.0
        done = False

        for event in self.history.events:
            if event.occurred_at >= boundary:
                break

            if event.field_name == self.percent_complete_field:
                completion = max(completion, self._parse_percent(event.to_value))
            elif event.field_name == STATUS_FIELD:
                if event.to_value in self.done_statuses:
                    done = True

        if done:
            completion = 1.0

        # Clamp out-of-range source data
        return min(max(completion, 0.0), 1.0)


def reconstruct(
    history: WorkItemHistory,
    percent_complete_field: str,
    done_statuses,
    percent_complete_scale: float = DEFAULT_PERCENT_COMPLETE_SCALE,
) -> CompletionTimeline:
    """Return the completion timeline for `history`."""
    return CompletionTimeline(
        history,
        percent_complete_field,
        done_statuses,
        percent_complete_scale=percent_complete_scale,
    )
