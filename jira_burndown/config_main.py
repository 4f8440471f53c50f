"""The calculators run for a burndown report, in order."""

from .calculators.completion import CompletionCalculator
from .calculators.projection import ProjectionCalculator
from .calculators.report import BurndownReportCalculator

CALCULATORS = (
    CompletionCalculator,  # should come first
    # -- others depend on results from this one
    ProjectionCalculator,
    BurndownReportCalculator,  # needs completion and projection results
)
