"""Utility functions for Jira Burndown.

Small helpers shared by the calculators: file extensions, JSON-friendly
values, and chart styling.
"""

import datetime
import logging
import os.path

import numpy as np
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)


def extend_dict(d, e):
    """Extend dictionary d with entries from e, returning a new dictionary."""
    r = d.copy()
    r.update(e)
    return r


def get_extension(filename):
    """Get file extension from filename."""
    return os.path.splitext(filename)[1].lower()


def to_json_string(value):
    """Convert value to JSON-serializable string format."""
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, (pd.Timestamp, datetime.date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float) and np.isnan(value):
        return ""

    try:
        return str(value)
    except TypeError:
        return value


def set_chart_context(context):
    """Set seaborn chart context."""
    sns.set_context(context)


def set_chart_style(style="whitegrid", despine=True):
    """Set seaborn chart style."""
    sns.set_style(style)
    if despine:
        sns.despine()
