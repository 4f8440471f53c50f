"""Calculator base class and runner for Jira Burndown."""

import logging

logger = logging.getLogger(__name__)


class Calculator:
    """Base class for calculators."""

    def __init__(self, query_manager, settings, results):
        """Initialise with a `QueryManager`, a dict of `settings`,
        and a reference to the dict of `results`.
        """
        self.query_manager = query_manager
        self.settings = settings
        self._results = results

    def get_result(self, calculator=None, default=None):
        """Get the results of the given calculator or self"""
        return self._results.get(calculator or self.__class__, default)

    def run(self):
        """Run the calculator and return its results.

        These will be set as `self._results[self.__class__]` and can be
        retrieved by other calculators with `get_result()`.
        """

    def write(self):
        """Write output files"""


def run_calculators(calculators, query_manager, settings):
    """Run all calculators passed in, in the order listed.
    Returns the aggregated results.
    """

    results = {}
    calculators = [C(query_manager, settings, results) for C in calculators]

    # Run all calculators first
    for c in calculators:
        logger.info("%s running...", c.__class__.__name__)
        results[c.__class__] = c.run()
        logger.info("%s completed", c.__class__.__name__)

    # Write all files as a second pass
    for c in calculators:
        logger.info("Writing file for %s...", c.__class__.__name__)
        c.write()

    return results
