"""Burndown report calculator for Jira Burndown.

This module writes the burndown workbook: a `Work` sheet with each issue's
weekly percent complete and earned value, and a `Projections` sheet with the
weekly projection table. Every cell holds a value computed by the
completion and projection calculators.
"""

import logging

import pandas as pd
from openpyxl.utils import get_column_letter

from ..calculator import Calculator
from .completion import WORK_HEADER, CompletionCalculator, completion_table
from .projection import ProjectionCalculator, projection_table

logger = logging.getLogger(__name__)

PERCENT_FORMAT = "0%"
NUMBER_FORMAT = "0.0"
DATE_FORMAT = "yyyy-mm-dd"

PROJECTION_DATE_COLUMNS = ["Date", "Fast (p68)", "Mean", "Slow (p68)"]


class BurndownReportCalculator(Calculator):
    """Assemble the `Work` and `Projections` sheets of the burndown report."""

    def run(self):
        if not self.settings.get("burndown_report"):
            return None

        matrix = self.get_result(CompletionCalculator)
        projection = self.get_result(ProjectionCalculator)

        if matrix is None or projection is None:
            logger.warning("Cannot build burndown report without projection data")
            return None

        return {
            "work": completion_table(matrix, blank_zero=True),
            "projections": projection_table(
                projection, self.settings["moving_avg_weeks"]
            ),
        }

    def write(self):
        output_file = self.settings.get("burndown_report")
        if not output_file:
            logger.debug("No output file specified for burndown report")
            return

        report = self.get_result()
        if report is None:
            return

        logger.info("Writing burndown report to %s", output_file)
        with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
            # The link column is folded into hyperlinks on the issue keys
            work = report["work"].drop(columns=["Link"])
            work.to_excel(writer, sheet_name="Work", index=False)
            format_work_sheet(writer.sheets["Work"], report["work"])

            report["projections"].to_excel(
                writer, sheet_name="Projections", index=False
            )
            format_projections_sheet(
                writer.sheets["Projections"], report["projections"]
            )


def _format_column(worksheet, column_index, number_format):
    letter = get_column_letter(column_index)
    for cell in worksheet[letter][1:]:
        cell.number_format = number_format


def format_work_sheet(worksheet, work):
    """Hyperlink issue keys and apply percent and number formats."""
    for row_index, url in enumerate(work["Link"], start=2):
        if url:
            cell = worksheet.cell(row=row_index, column=1)
            cell.hyperlink = url
            cell.style = "Hyperlink"

    columns = [c for c in work.columns if c != "Link"]
    for column_index, column in enumerate(columns, start=1):
        if column.startswith("% "):
            _format_column(worksheet, column_index, PERCENT_FORMAT)
        elif column.startswith("EV ") or column == "Size":
            _format_column(worksheet, column_index, NUMBER_FORMAT)

    worksheet.freeze_panes = worksheet.cell(row=2, column=len(WORK_HEADER))


def format_projections_sheet(worksheet, projections):
    """Apply date and number formats."""
    for column_index, column in enumerate(projections.columns, start=1):
        if column in PROJECTION_DATE_COLUMNS:
            _format_column(worksheet, column_index, DATE_FORMAT)
        else:
            _format_column(worksheet, column_index, NUMBER_FORMAT)

    worksheet.freeze_panes = "B2"
