"""Completion calculator for Jira Burndown.

This module fetches the issues matching the configured query, reconstructs
each issue's completion history from its changelog, and samples every
history at weekly checkpoints to build the completion matrix.
"""

import datetime
import json
import logging

import pandas as pd

from ..calculator import Calculator
from ..config.loader import PERCENT_COMPLETE_ATTRIBUTE, SIZE_ATTRIBUTE
from ..history import WorkItemHistory
from ..projection import build_completion_matrix, week_checkpoints
from ..utils import get_extension, to_json_string

logger = logging.getLogger(__name__)

WORK_HEADER = ["Issue Key", "Link", "Summary", "Type", "Status", "Assignee", "Size"]


def checkpoint_labels(checkpoints):
    """Map each checkpoint to a short column label, e.g. `03-15`.

    The year is only included when the checkpoints span long enough for the
    short labels to repeat.
    """
    labels = [c.strftime("%m-%d") for c in checkpoints]
    if len(set(labels)) < len(labels):
        labels = [c.strftime("%Y-%m-%d") for c in checkpoints]
    return dict(zip(checkpoints, labels))


class CompletionCalculator(Calculator):
    """Build the completion matrix: for each issue returned by the query and
    each weekly checkpoint from `start_date` to `as_of` (today, unless set),
    the fraction of the issue complete by the end of that day, and the
    issue's size.

    Write a table with one row per issue and a percent complete and earned
    value column per checkpoint, newest checkpoint first.
    """

    def run(self, today=None):
        as_of = self.settings.get("as_of") or today or datetime.date.today()
        checkpoints = week_checkpoints(self.settings["start_date"], as_of)

        logger.debug(
            "Sampling %d weekly checkpoints from %s to %s",
            len(checkpoints),
            self.settings["start_date"],
            as_of,
        )

        histories = [
            WorkItemHistory.from_issue(
                issue,
                size=self.query_manager.resolve_size(issue, SIZE_ATTRIBUTE),
                url=self.query_manager.issue_url(issue.key),
            )
            for issue in self.query_manager.find_issues(self.settings["query"])
        ]

        return build_completion_matrix(
            histories,
            checkpoints,
            self.settings["attributes"][PERCENT_COMPLETE_ATTRIBUTE],
            self.settings["done_statuses"],
            percent_complete_scale=self.settings.get("percent_complete_scale", 100.0),
        )

    def write(self):
        output_files = self.settings.get("completion_data", [])

        if not output_files:
            logger.debug("No output file specified for completion data")
            return

        data = completion_table(self.get_result())

        for output_file in output_files:
            logger.info("Writing completion data to %s", output_file)
            output_extension = get_extension(output_file)

            if output_extension == ".json":
                values = [list(data.columns)] + [
                    list(map(to_json_string, row)) for row in data.values.tolist()
                ]
                with open(output_file, "w", encoding="utf-8") as out:
                    out.write(json.dumps(values))
            elif output_extension == ".xlsx":
                data.to_excel(output_file, sheet_name="Work", index=False)
            else:
                data.to_csv(output_file, header=True, index=False)


def completion_table(matrix, blank_zero=False) -> pd.DataFrame:
    """One row per issue: details, size, then a `% MM-DD` and `EV MM-DD`
    column pair per checkpoint, newest checkpoint first.

    With `blank_zero`, checkpoints where an issue has made no progress are
    left empty rather than showing 0.
    """
    histories = {h.key: h for h in matrix.histories}
    earned_value = matrix.earned_value()
    checkpoints = list(reversed(matrix.checkpoints))
    labels = checkpoint_labels(checkpoints)

    checkpoint_columns = []
    for checkpoint in checkpoints:
        checkpoint_columns += [f"% {labels[checkpoint]}", f"EV {labels[checkpoint]}"]

    rows = []
    for key in matrix.keys:
        history = histories.get(key)
        row = [
            key,
            getattr(history, "url", None),
            getattr(history, "summary", None),
            getattr(history, "issue_type", None),
            getattr(history, "status", None),
            getattr(history, "assignee", None),
            float(matrix.sizes.at[key]),
        ]
        for checkpoint in checkpoints:
            fraction = float(matrix.fractions.at[key, checkpoint])
            if blank_zero and fraction == 0:
                row += [None, None]
            else:
                row += [fraction, float(earned_value.at[key, checkpoint])]
        rows.append(row)

    return pd.DataFrame(rows, columns=WORK_HEADER + checkpoint_columns)
