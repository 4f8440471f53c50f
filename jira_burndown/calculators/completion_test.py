"""Tests for the completion calculator in Jira Burndown."""

import datetime
import json

import pandas as pd
import pytest

from ..exceptions import TimestampParseError, ValueParseError
from ..querymanager import QueryManager
from ..test_classes import FauxChange as Change
from ..test_classes import FauxIssue as Issue
from ..test_classes import FauxJIRA as JIRA
from ..test_data import CHECKPOINTS, COMPLETED_VALUES
from ..utils import extend_dict
from .completion import (
    WORK_HEADER,
    CompletionCalculator,
    checkpoint_labels,
    completion_table,
)

LABELS = ["01-29", "01-22", "01-15", "01-08", "01-01"]


@pytest.fixture(name="settings")
def fixture_settings(base_minimal_settings):
    """Provide settings fixture for completion tests."""
    return base_minimal_settings


@pytest.fixture(name="matrix")
def fixture_matrix(burndown_query_manager, settings):
    """The completion matrix for the shared burndown issues."""
    return CompletionCalculator(burndown_query_manager, settings, {}).run()


def test_empty(minimal_query_manager, settings):
    """Test that no issues give an empty matrix over all checkpoints."""
    calculator = CompletionCalculator(minimal_query_manager, settings, {})

    matrix = calculator.run()

    assert len(matrix) == 0
    assert matrix.checkpoints == CHECKPOINTS
    assert list(matrix.completed_values()) == [0, 0, 0, 0, 0]


def test_run(matrix):
    """Test completion and size of each issue at each checkpoint."""
    assert matrix.keys == ["A-1", "A-2", "A-3", "A-4"]
    assert matrix.checkpoints == CHECKPOINTS

    assert list(matrix.fractions.loc["A-1"]) == [0.0, 0.5, 1.0, 1.0, 1.0]
    assert list(matrix.fractions.loc["A-2"]) == [0.0, 0.0, 0.0, 0.25, 0.75]
    assert list(matrix.fractions.loc["A-3"]) == [0.0, 0.0, 0.0, 0.0, 0.0]
    assert list(matrix.fractions.loc["A-4"]) == [0.0, 1.0, 1.0, 1.0, 1.0]

    assert list(matrix.sizes) == [10.0, 20.0, 5.0, 0.0]
    assert list(matrix.completed_values()) == COMPLETED_VALUES


def test_run_keeps_issue_details(matrix):
    """Test that the histories carry the issue details and links."""
    history = matrix.histories[0]

    assert history.key == "A-1"
    assert history.summary == "Issue A-1"
    assert history.issue_type == "Story"
    assert history.status == "Done"
    assert history.assignee == "Jane Doe"
    assert history.url == "https://example.org/browse/A-1"


def test_run_queries_with_changelog(burndown_query_manager, settings):
    """Test that the query is run once with the changelog expanded."""
    CompletionCalculator(burndown_query_manager, settings, {}).run()

    assert burndown_query_manager.jira.searches == [
        ("project = TEST", {"expand": "changelog", "maxResults": None})
    ]


def test_run_defaults_to_today(burndown_query_manager, settings):
    """Test that the last checkpoint is on or before today."""
    settings = extend_dict(settings, {"as_of": None})
    calculator = CompletionCalculator(burndown_query_manager, settings, {})

    matrix = calculator.run(today=datetime.date(2024, 2, 4))

    assert matrix.checkpoints == CHECKPOINTS

    matrix = calculator.run()

    assert matrix.checkpoints[-1] <= datetime.date.today()


def test_run_bad_timestamp(base_minimal_fields, settings):
    """Test that a malformed changelog timestamp fails the run."""
    jira = JIRA(
        fields=base_minimal_fields,
        issues=[
            Issue(
                "A-1",
                customfield_001=1,
                changes=[Change("2024-01-03", [("status", None, "Done")])],
            )
        ],
    )
    calculator = CompletionCalculator(QueryManager(jira, settings), settings, {})

    with pytest.raises(TimestampParseError):
        calculator.run()


def test_run_bad_size(base_minimal_fields, settings):
    """Test that a non-numeric size fails the run."""
    jira = JIRA(
        fields=base_minimal_fields,
        issues=[Issue("A-1", customfield_001="large", changes=[])],
    )
    calculator = CompletionCalculator(QueryManager(jira, settings), settings, {})

    with pytest.raises(ValueParseError) as excinfo:
        calculator.run()

    assert excinfo.value.key == "A-1"


def test_checkpoint_labels():
    """Test short labels, with the year once they would repeat."""
    assert list(checkpoint_labels(CHECKPOINTS).values()) == [
        "01-01",
        "01-08",
        "01-15",
        "01-22",
        "01-29",
    ]

    checkpoints = [datetime.date(2023, 3, 15), datetime.date(2024, 3, 15)]
    labels = checkpoint_labels(checkpoints)

    assert labels == {
        datetime.date(2023, 3, 15): "2023-03-15",
        datetime.date(2024, 3, 15): "2024-03-15",
    }


def test_completion_table(matrix):
    """Test the work table, newest checkpoint first."""
    table = completion_table(matrix)

    expected_columns = list(WORK_HEADER)
    for label in LABELS:
        expected_columns += [f"% {label}", f"EV {label}"]
    assert list(table.columns) == expected_columns

    assert list(table["Issue Key"]) == ["A-1", "A-2", "A-3", "A-4"]
    assert table.loc[0, "Link"] == "https://example.org/browse/A-1"
    assert table.loc[0, "Summary"] == "Issue A-1"
    assert table.loc[0, "Assignee"] == "Jane Doe"
    assert list(table["Size"]) == [10.0, 20.0, 5.0, 0.0]

    assert list(table["% 01-29"]) == [1.0, 0.75, 0.0, 1.0]
    assert list(table["EV 01-29"]) == [10.0, 15.0, 0.0, 0.0]
    assert list(table["% 01-08"]) == [0.5, 0.0, 0.0, 1.0]
    assert list(table["EV 01-08"]) == [5.0, 0.0, 0.0, 0.0]


def test_completion_table_blank_zero(matrix):
    """Test that checkpoints with no progress are left empty."""
    table = completion_table(matrix, blank_zero=True)

    assert table["% 01-29"].isna().tolist() == [False, False, True, False]
    assert table["EV 01-22"].isna().tolist() == [False, False, True, False]
    assert table["% 01-01"].isna().all()
    assert table.loc[0, "% 01-08"] == 0.5


def test_write_none(burndown_query_manager, settings, tmp_path, monkeypatch):
    """Test that nothing is written without output files."""
    monkeypatch.chdir(tmp_path)
    results = {}
    calculator = CompletionCalculator(burndown_query_manager, settings, results)
    results[CompletionCalculator] = calculator.run()

    calculator.write()

    assert not list(tmp_path.iterdir())


def _write(query_manager, settings, output_file):
    settings = extend_dict(settings, {"completion_data": [output_file]})
    results = {}
    calculator = CompletionCalculator(query_manager, settings, results)
    results[CompletionCalculator] = calculator.run()
    calculator.write()


def test_write_csv(burndown_query_manager, settings, tmp_path):
    """Test writing completion data as CSV."""
    output_file = str(tmp_path / "completion.csv")

    _write(burndown_query_manager, settings, output_file)

    data = pd.read_csv(output_file)
    assert list(data.columns[:7]) == WORK_HEADER
    assert list(data.columns[7:9]) == ["% 01-29", "EV 01-29"]
    assert list(data["Issue Key"]) == ["A-1", "A-2", "A-3", "A-4"]
    assert list(data["EV 01-29"]) == [10.0, 15.0, 0.0, 0.0]


def test_write_json(burndown_query_manager, settings, tmp_path):
    """Test writing completion data as JSON rows with a header."""
    output_file = str(tmp_path / "completion.json")

    _write(burndown_query_manager, settings, output_file)

    with open(output_file, encoding="utf-8") as f:
        data = json.load(f)

    assert data[0][:7] == WORK_HEADER
    assert len(data) == 5
    assert data[1][:7] == [
        "A-1",
        "https://example.org/browse/A-1",
        "Issue A-1",
        "Story",
        "Done",
        "Jane Doe",
        "10.0",
    ]
    assert data[1][7:9] == ["1.0", "10.0"]


def test_write_xlsx(burndown_query_manager, settings, tmp_path):
    """Test writing completion data as a spreadsheet."""
    output_file = str(tmp_path / "completion.xlsx")

    _write(burndown_query_manager, settings, output_file)

    data = pd.read_excel(output_file, sheet_name="Work")
    assert list(data["Issue Key"]) == ["A-1", "A-2", "A-3", "A-4"]
    assert list(data["% 01-22"]) == [1.0, 0.25, 0.0, 1.0]
