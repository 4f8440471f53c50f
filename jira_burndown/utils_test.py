"""Tests for utility functions in Jira Burndown."""

import datetime

import numpy as np
import pandas as pd

from .utils import extend_dict, get_extension, to_json_string


def test_extend_dict():
    """Test that extend_dict returns a new dictionary."""
    d = {"one": 1, "two": 2}

    e = extend_dict(d, {"two": 22, "three": 3})

    assert e == {"one": 1, "two": 22, "three": 3}
    assert d == {"one": 1, "two": 2}


def test_get_extension():
    """Test get_extension functionality."""
    assert get_extension("foo.csv") == ".csv"
    assert get_extension("/path/to/foo.XLSX") == ".xlsx"
    assert get_extension("foo") == ""


def test_to_json_string():
    """Test converting values for JSON output."""
    assert to_json_string(1) == "1"
    assert to_json_string(2.5) == "2.5"
    assert to_json_string("foo") == "foo"
    assert to_json_string(datetime.date(2024, 1, 29)) == "2024-01-29"
    assert to_json_string(pd.Timestamp("2024-01-29 10:00")) == "2024-01-29"
    assert to_json_string(None) == ""
    assert to_json_string(pd.NaT) == ""
    assert to_json_string(np.nan) == ""
