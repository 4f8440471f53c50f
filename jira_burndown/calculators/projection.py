"""Projection calculator for Jira Burndown.

This module turns the completion matrix into the weekly projection table
(earned value, velocity, p68 velocity band and projected completion dates),
and writes it as a data file and/or a burndown chart.
"""

import json
import logging
from dataclasses import astuple

import matplotlib.pyplot as plt
import pandas as pd

from ..calculator import Calculator
from ..projection import project_completion, projection_rows
from ..utils import get_extension, set_chart_style, to_json_string
from .completion import CompletionCalculator

logger = logging.getLogger(__name__)

# Projected date columns, fastest first, with their chart styles
BAND_STYLES = [
    ("fast_date", "Fast (p68)", ":"),
    ("mean_date", "Mean", "--"),
    ("slow_date", "Slow (p68)", ":"),
]


def projection_header(window):
    """Column headers for the projection table, in `PROJECTION_COLUMNS` order."""
    return [
        "Completed",
        "Remaining",
        "Velocity",
        f"Avg ({window}w)",
        f"StdDev ({window}w)",
        "Fast (p68)",
        "Mean",
        "Slow (p68)",
        "V. Fast (p68)",
        "V. Slow (p68)",
    ]


def projection_table(data, window) -> pd.DataFrame:
    """The projection table with a `Date` column and display headers.

    Built from `projection_rows()`, so every date is a `datetime.date` and
    absent projected dates are None.
    """
    # `ProjectionRow` fields are the date followed by `PROJECTION_COLUMNS`
    return pd.DataFrame(
        [astuple(row) for row in projection_rows(data)],
        columns=["Date"] + projection_header(window),
    )


class ProjectionCalculator(Calculator):
    """Build the weekly projection table from the completion matrix: one row
    per checkpoint with the completed and remaining value, the velocity, its
    moving average and sample standard deviation over the last `Moving avg
    weeks` weeks, the one-sigma velocity band, and the dates the remaining
    work would be done at the fast, mean and slow velocities.

    Write as a data file and/or a burndown chart.
    """

    def run(self):
        matrix = self.get_result(CompletionCalculator)
        window = self.settings["moving_avg_weeks"]

        logger.debug(
            "Projecting completion over %d checkpoints with a %d week window",
            len(matrix.checkpoints),
            window,
        )

        return project_completion(matrix, window)

    def write(self):
        data = self.get_result()

        if self.settings.get("projection_data"):
            self.write_file(data, self.settings["projection_data"])
        else:
            logger.debug("No output file specified for projection data")

        if self.settings.get("burndown_chart"):
            self.write_chart(data, self.settings["burndown_chart"])
        else:
            logger.debug("No output file specified for burndown chart")

    def write_file(self, data, output_files):
        """Write projection data to output files in various formats."""
        table = projection_table(data, self.settings["moving_avg_weeks"])

        for output_file in output_files:
            output_extension = get_extension(output_file)

            logger.info("Writing projection data to %s", output_file)
            if output_extension == ".json":
                values = [list(table.columns)] + [
                    list(map(to_json_string, row)) for row in table.values.tolist()
                ]
                with open(output_file, "w", encoding="utf-8") as out:
                    out.write(json.dumps(values))
            elif output_extension == ".xlsx":
                table.to_excel(output_file, sheet_name="Projections", index=False)
            else:
                table.to_csv(output_file, header=True, index=False)

    def write_chart(self, data, output_file):
        """Write burndown chart to output file."""
        if len(data.index) == 0:
            logger.warning("Cannot draw burndown chart with no checkpoints")
            return

        fig, ax = plt.subplots()

        if self.settings.get("burndown_chart_title"):
            ax.set_title(self.settings["burndown_chart_title"])

        fig.autofmt_xdate()

        ax.set_xlabel("Date")
        ax.set_ylabel("Remaining")

        # Plain dates: projections can fall after the last pandas Timestamp
        dates = [d.date() for d in data.index]
        ax.plot(dates, data["remaining"], marker="o", label="Remaining")

        # Project from the latest checkpoint to each projected date
        last_date = dates[-1]
        last_remaining = data["remaining"].iloc[-1]

        for column, label, linestyle in BAND_STYLES:
            projected = data[column].iloc[-1]
            if projected is None:
                continue

            ax.plot(
                [last_date, projected],
                [last_remaining, 0],
                linestyle=linestyle,
                linewidth=1,
                label=label,
            )
            ax.annotate(
                projected.strftime(self.settings.get("date_format", "%d/%m/%Y")),
                xy=(projected, 0),
                xytext=(0, 4),
                textcoords="offset points",
                fontsize="x-small",
                ha="center",
                va="bottom",
            )

        _, top = ax.get_ylim()
        ax.set_ylim(0, top)

        ax.legend(loc="center left", bbox_to_anchor=(1, 0.5))

        set_chart_style()

        # Write file
        logger.info("Writing burndown chart to %s", output_file)
        fig.savefig(output_file, bbox_inches="tight", dpi=300)
        plt.close(fig)
