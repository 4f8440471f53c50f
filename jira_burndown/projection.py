"""Earned value, velocity and completion date projection for Jira Burndown.

This module builds the (item x week) completion matrix from reconstructed
item histories, and turns the weekly completed values into a projection
table: earned value, remaining value, velocity, a moving average of
velocity with its sample standard deviation, a one-sigma (p68) velocity
band, and the completion dates each velocity implies.
"""

import datetime
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from .history import DEFAULT_PERCENT_COMPLETE_SCALE, reconstruct

logger = logging.getLogger(__name__)

# Working days per week, used to turn a weekly velocity into a day budget
WORKING_DAYS_PER_WEEK = 5

PROJECTION_COLUMNS = [
    "completed",
    "remaining",
    "velocity",
    "moving_avg_velocity",
    "std_dev_velocity",
    "fast_date",
    "mean_date",
    "slow_date",
    "fast_velocity",
    "slow_velocity",
]

# Projected date column -> velocity column it is projected from
PROJECTED_DATE_COLUMNS = {
    "fast_date": "fast_velocity",
    "mean_date": "moving_avg_velocity",
    "slow_date": "slow_velocity",
}


def _to_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return pd.Timestamp(value).date()


def week_checkpoints(start_date, as_of) -> List[datetime.date]:
    """Weekly sample dates from `start_date` through `as_of`, inclusive.

    The last checkpoint is the last whole week boundary on or before `as_of`.
    """
    start_date = _to_date(start_date)
    as_of = _to_date(as_of)

    if start_date > as_of:
        return []

    return [d.date() for d in pd.date_range(start_date, as_of, freq="7D")]


def add_business_days(date, days: int) -> datetime.date:
    """Advance `date` by `days` working days, skipping Saturdays and Sundays.

    As with a spreadsheet `WORKDAY()`, a weekend start date counts from the
    preceding Friday, and zero days returns the date unchanged. Raises
    `OverflowError` if the result is past `datetime.date.max`.
    """
    date = _to_date(date)
    if days == 0:
        return date

    result = np.busday_offset(np.datetime64(date, "D"), days, roll="backward")
    # numpy gives back a plain integer for dates datetime.date cannot hold
    result = result.astype(datetime.date)
    if not isinstance(result, datetime.date):
        raise OverflowError(f"{days} working days after {date} is out of range")
    return result


def _max_business_days(date: datetime.date) -> int:
    # Leaves a week of slack for the weekends at either end
    weeks = (datetime.date.max - date).days // 7
    return (weeks - 1) * WORKING_DAYS_PER_WEEK


def projected_date(checkpoint, remaining: float, velocity) -> Optional[datetime.date]:
    """The date `remaining` value is done at `velocity` per week.

    Returns None when there is remaining work but no positive velocity to
    project it with, or when the velocity is so small that the date would be
    past `datetime.date.max`.
    """
    if velocity is None or pd.isna(velocity) or velocity <= 0:
        return None

    checkpoint = _to_date(checkpoint)
    budget = (remaining / velocity) * WORKING_DAYS_PER_WEEK
    if not math.isfinite(budget):
        return None

    days = max(math.ceil(budget), 0)
    if days > _max_business_days(checkpoint):
        logger.debug(
            "Projection of %s at velocity %s from %s is out of range",
            remaining,
            velocity,
            checkpoint,
        )
        return None

    return add_business_days(checkpoint, days)


class CompletionMatrix:
    """Completion fraction and size for each (item, checkpoint) pair.

    `fractions` is a DataFrame indexed by item key with one column per
    checkpoint; `sizes` is a Series indexed by item key.
    """

    def __init__(self, fractions: pd.DataFrame, sizes: pd.Series, histories=None):
        self.fractions = fractions
        self.sizes = sizes.astype("float64")
        self.histories = list(histories or [])

    def __repr__(self):
        return (
            f"<CompletionMatrix items={len(self.fractions.index)} "
            f"checkpoints={len(self.fractions.columns)}>"
        )

    def __len__(self):
        return len(self.fractions.index)

    @property
    def keys(self):
        """Item keys, in input order."""
        return list(self.fractions.index)

    @property
    def checkpoints(self):
        """Checkpoint dates, in chronological order."""
        return list(self.fractions.columns)

    def get(self, key, checkpoint):
        """Return `(completion_fraction, size)` for an item at a checkpoint."""
        return (
            float(self.fractions.at[key, checkpoint]),
            float(self.sizes.at[key]),
        )

    def earned_value(self) -> pd.DataFrame:
        """Completion fraction multiplied by size, per item and checkpoint."""
        return self.fractions.mul(self.sizes, axis=0)

    def completed_values(self) -> pd.Series:
        """Total earned value at each checkpoint."""
        completed = self.earned_value().sum(axis=0)
        return completed.reindex(self.fractions.columns).fillna(0.0)

    def total_size(self) -> float:
        """Sum of the sizes of all items."""
        return float(self.sizes.sum())


def build_completion_matrix(
    histories,
    checkpoints,
    percent_complete_field,
    done_statuses,
    percent_complete_scale=DEFAULT_PERCENT_COMPLETE_SCALE,
) -> CompletionMatrix:
    """Evaluate each history's completion timeline at each checkpoint."""
    histories = list(histories)
    checkpoints = list(checkpoints)

    rows = []
    for history in histories:
        timeline = reconstruct(
            history,
            percent_complete_field,
            done_statuses,
            percent_complete_scale=percent_complete_scale,
        )
        rows.append([timeline.completion_at(d) for d in checkpoints])

    keys = [h.key for h in histories]
    fractions = pd.DataFrame(rows, index=keys, columns=checkpoints, dtype="float64")
    sizes = pd.Series([h.size for h in histories], index=keys, dtype="float64")

    logger.debug(
        "Built completion matrix of %d items by %d checkpoints",
        len(keys),
        len(checkpoints),
    )

    return CompletionMatrix(fractions, sizes, histories)


def calculate_projection(
    completed_values, total_size, window, checkpoints=None
) -> pd.DataFrame:
    """Build the weekly projection table.

    `completed_values` is a Series of earned value indexed by checkpoint date,
    in chronological order, or a plain sequence with the dates passed as
    `checkpoints`. Returns a DataFrame indexed by `date` with the
    columns in `PROJECTION_COLUMNS`. Values that need more history than is
    available are NaN (numbers) or None (dates).

    The moving average and standard deviation for row `i` cover the last
    `min(i, window)` velocities; the average needs two of them and the
    standard deviation (and everything derived from it) three.
    """
    if window < 1:
        raise ValueError(f"Moving average window must be at least 1, got {window}")

    completed = pd.Series(completed_values, dtype="float64")
    if checkpoints is not None:
        completed.index = list(checkpoints)
    index = pd.DatetimeIndex(pd.to_datetime(list(completed.index)), name="date")

    data = pd.DataFrame({"completed": completed.to_numpy()}, index=index)
    data["remaining"] = total_size - data["completed"]
    data["velocity"] = data["completed"].diff()

    velocities = data["velocity"].to_numpy()
    moving_avg = np.full(len(velocities), np.nan)
    std_dev = np.full(len(velocities), np.nan)

    # Weeks are processed in order; the first velocity is at index 1
    for i in range(2, len(velocities)):
        sample = velocities[max(1, i - window + 1) : i + 1]
        moving_avg[i] = sample.mean()
        if i >= 3 and len(sample) >= 2:
            std_dev[i] = sample.std(ddof=1)

    data["moving_avg_velocity"] = moving_avg
    data["std_dev_velocity"] = std_dev

    data["fast_velocity"] = data["moving_avg_velocity"] + data["std_dev_velocity"]
    data["slow_velocity"] = data["moving_avg_velocity"] - data["std_dev_velocity"]

    has_band = data["std_dev_velocity"].notna()
    for date_column, velocity_column in PROJECTED_DATE_COLUMNS.items():
        data[date_column] = pd.Series(
            [
                projected_date(checkpoint, remaining, velocity) if band else None
                for checkpoint, remaining, velocity, band in zip(
                    data.index,
                    data["remaining"],
                    data[velocity_column],
                    has_band,
                )
            ],
            index=data.index,
            dtype="object",
        )

    return data[PROJECTION_COLUMNS]


def project_completion(matrix: CompletionMatrix, window) -> pd.DataFrame:
    """Build the projection table for a completion matrix."""
    return calculate_projection(
        matrix.completed_values(), matrix.total_size(), window
    )


@dataclass(frozen=True)
class ProjectionRow:
    """One week of the projection table. Absent values are None."""

    date: datetime.date
    completed_value: float
    remaining_value: float
    velocity: Optional[float] = None
    moving_avg_velocity: Optional[float] = None
    std_dev_velocity: Optional[float] = None
    fast_date: Optional[datetime.date] = None
    mean_date: Optional[datetime.date] = None
    slow_date: Optional[datetime.date] = None
    fast_velocity: Optional[float] = None
    slow_velocity: Optional[float] = None


def _optional_float(value):
    return None if value is None or pd.isna(value) else float(value)


def _optional_date(value):
    return None if value is None or pd.isna(value) else _to_date(value)


def projection_rows(data: pd.DataFrame) -> List[ProjectionRow]:
    """Convert a projection table to a list of `ProjectionRow`."""
    return [
        ProjectionRow(
            date=_to_date(date),
            completed_value=float(row["completed"]),
            remaining_value=float(row["remaining"]),
            velocity=_optional_float(row["velocity"]),
            moving_avg_velocity=_optional_float(row["moving_avg_velocity"]),
            std_dev_velocity=_optional_float(row["std_dev_velocity"]),
            fast_date=_optional_date(row["fast_date"]),
            mean_date=_optional_date(row["mean_date"]),
            slow_date=_optional_date(row["slow_date"]),
            fast_velocity=_optional_float(row["fast_velocity"]),
            slow_velocity=_optional_float(row["slow_velocity"]),
        )
        for date, row in data.iterrows()
    ]
