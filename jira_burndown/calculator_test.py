"""Tests for calculator functionality in Jira Burndown."""

from .calculator import Calculator, run_calculators
from .calculators.completion import CompletionCalculator
from .calculators.projection import ProjectionCalculator
from .calculators.report import BurndownReportCalculator
from .config_main import CALCULATORS


def test_run_calculator():
    """Test that all calculators run before any writes."""
    events = []

    class First(Calculator):
        """Calculator with a plain result."""

        def run(self):
            events.append("run First")
            return "First"

        def write(self):
            events.append("write First")

    class Second(Calculator):
        """Calculator that builds on a previous result."""

        def run(self):
            events.append("run Second")
            return self.get_result(First) + " " + self.settings["foo"]

        def write(self):
            events.append(f"write {self.get_result()}")

    results = run_calculators([First, Second], object(), {"foo": "bar"})

    assert results == {First: "First", Second: "First bar"}
    assert events == ["run First", "run Second", "write First", "write First bar"]


def test_get_result_default():
    """Test the default for a calculator that has not run."""
    calculator = Calculator(None, {}, {})

    assert calculator.get_result() is None
    assert calculator.get_result(Calculator, default="missing") == "missing"


def test_calculators_in_dependency_order():
    """Test that the burndown calculators run after their inputs."""
    assert CALCULATORS == (
        CompletionCalculator,
        ProjectionCalculator,
        BurndownReportCalculator,
    )


def test_run_burndown_calculators(burndown_query_manager, base_minimal_settings):
    """Test running the burndown calculators with no outputs configured."""
    results = run_calculators(
        CALCULATORS, burndown_query_manager, base_minimal_settings
    )

    assert len(results[CompletionCalculator]) == 4
    assert list(results[ProjectionCalculator]["remaining"]) == [35, 30, 25, 20, 10]
    assert results[BurndownReportCalculator] is None
