"""Test configuration and fixtures for Jira Burndown."""

import pytest

from .querymanager import QueryManager
from .test_classes import FauxJIRA as JIRA
from .test_data import CHECKPOINTS, MINIMAL_FIELDS, create_burndown_issues


@pytest.fixture(name="base_minimal_settings")
def minimal_settings():
    """The smallest `settings` required to build a query manager and run the
    burndown calculators.
    """
    return {
        "query": "project = TEST",
        "attributes": {
            "Size": "Story Points",
            "Percent complete": "Percent Complete",
        },
        "done_statuses": ["Done", "Closed"],
        "max_results": None,
        "start_date": CHECKPOINTS[0],
        "as_of": CHECKPOINTS[-1],
        "moving_avg_weeks": 3,
        "percent_complete_scale": 100.0,
        "date_format": "%d/%m/%Y",
        "completion_data": [],
        "projection_data": [],
        "burndown_report": None,
        "burndown_chart": None,
        "burndown_chart_title": None,
    }


@pytest.fixture(name="base_minimal_fields")
def minimal_fields():
    """A `fields` list with the standard fields and the two custom fields
    named in `base_minimal_settings`.
    """
    return list(MINIMAL_FIELDS)


@pytest.fixture(name="burndown_issues")
def issues():
    """Issues with changelogs covering the test checkpoints."""
    return create_burndown_issues()


@pytest.fixture
def minimal_query_manager(base_minimal_fields, base_minimal_settings):
    """A query manager with no issues"""
    jira = JIRA(fields=base_minimal_fields, issues=[])
    return QueryManager(jira, base_minimal_settings)


@pytest.fixture
def burndown_query_manager(
    base_minimal_fields, base_minimal_settings, burndown_issues
):
    """A query manager returning the `burndown_issues`"""
    jira = JIRA(fields=base_minimal_fields, issues=burndown_issues)
    return QueryManager(jira, base_minimal_settings)
