"""Query management module for Jira Burndown.

This module fetches issues (with their changelogs) from JIRA, maps the
configured attribute names to JIRA field ids, and resolves field values.
"""

import json
import logging

from jira.exceptions import JIRAError

from .config import ConfigError
from .exceptions import ValueParseError

logger = logging.getLogger(__name__)


def multi_getattr(obj, attr, **kw):
    """Get nested attribute from object using dot notation.

    Args:
        obj: The object to get attributes from
        attr: Dot-separated attribute path (e.g., 'field.subfield')
        **kw: Keyword arguments, including 'default' for fallback value

    Returns:
        The attribute value or default if specified

    Raises:
        AttributeError: If attribute doesn't exist and no default provided
    """
    for name in attr.split("."):
        try:
            obj = getattr(obj, name)
        except AttributeError:
            if "default" in kw:
                return kw["default"]
            raise
    return obj


class QueryManager:
    """Manage and execute queries"""

    settings = {
        "attributes": {},
        "max_results": False,
    }

    def __init__(self, jira, settings):
        self.jira = jira
        self.settings = self.settings.copy()
        self.settings.update(settings)

        self.attributes_to_fields = {}

        # Look up fields in JIRA and resolve attributes to fields
        logger.debug("Resolving JIRA fields")
        self.jira_fields = self.jira.fields()

        if len(self.jira_fields) == 0:
            raise ConfigError(
                "No field data retrieved from JIRA. "
                "This likely means a problem with the JIRA API."
            ) from None

        self.jira_fields_to_names = {
            field["id"]: field["name"] for field in self.jira_fields
        }

        for name, field in self.settings["attributes"].items():
            self.attributes_to_fields[name] = self.field_name_to_id(field)

    @property
    def server_url(self):
        """Base URL of the JIRA server, without a trailing slash."""
        options = getattr(self.jira, "_options", None) or {}
        return (options.get("server") or "").rstrip("/")

    def issue_url(self, key):
        """Browser link to the issue with the given key."""
        return f"{self.server_url}/browse/{key}"

    def field_name_to_id(self, name):
        """Convert field name to JIRA field ID.

        Raises:
            ConfigError: If field name doesn't exist in JIRA
        """
        try:
            return next(
                f["id"] for f in self.jira_fields if f["name"].lower() == name.lower()
            )
        except StopIteration:
            logger.debug(
                "Failed to look up %s in JIRA fields: %s",
                name,
                json.dumps(self.jira_fields),
            )

            raise ConfigError(
                f"JIRA field with name `{name}` does not exist "
                f"(did you try to use the field id instead?)"
            ) from None

    def resolve_attribute_value(self, issue, attribute_name):
        """Given an attribute name (i.e. one named in the config file and
        mapped to a field in JIRA), return its value from the given issue.
        """
        field_id = self.attributes_to_fields[attribute_name]
        return self.resolve_field_value(issue, field_id)

    def resolve_field_value(self, issue, field_id):
        """Given a JIRA internal field id, return its value from the given
        issue, unwrapping option values and taking the first of a list.
        """

        try:
            field_value = multi_getattr(issue.fields, field_id)
        except AttributeError:
            logger.debug(
                "Could not get value for field %s on issue %s",
                self.jira_fields_to_names.get(field_id, field_id),
                issue.key,
            )
            return None

        if field_value is None:
            return None

        value = getattr(field_value, "value", field_value)

        if isinstance(value, (list, tuple)):
            value = getattr(value[0], "name", value[0]) if len(value) > 0 else None

        return value

    def resolve_size(self, issue, attribute_name="Size"):
        """Return the size of an issue as a float. Unset sizes are 0.

        Raises:
            ValueParseError: If the size field holds a non-numeric value
        """
        value = self.resolve_attribute_value(issue, attribute_name)

        if value is None or value == "":
            return 0.0

        try:
            return float(value)
        except (TypeError, ValueError):
            field_id = self.attributes_to_fields[attribute_name]
            raise ValueParseError(
                f"Could not convert value `{value}` of field "
                f"`{self.jira_fields_to_names.get(field_id, field_id)}` on issue "
                f"`{issue.key}` to a number",
                key=issue.key,
                field=field_id,
                value=value,
            ) from None

    # Basic queries

    def find_issues(self, jql, expand="changelog", max_results=None):
        """Return a list of issues with changelog metadata for the given JQL.

        Args:
            jql: JQL query string
            expand: Fields to expand (default: "changelog")
            max_results: Optional limit on number of results. If None, uses
                settings["max_results"]. If False, no limit.
        """
        if max_results is None:
            max_results = self.settings["max_results"]

        logger.info("Fetching issues with query `%s`", jql)
        if max_results:
            logger.info("Limiting to %d results", max_results)

        try:
            # False means "no limit" to us, None means the same to the jira library
            issues = self.jira.search_issues(
                jql,
                expand=expand,
                maxResults=None if max_results is False else max_results,
            )
        except JIRAError as e:
            logger.error(
                "JIRA API error while fetching issues with query `%s`: %s (Status: %s)",
                jql,
                getattr(e, "text", str(e)),
                getattr(e, "status_code", "Unknown"),
            )
            raise

        logger.info("Fetched %d issues", len(issues))
        if len(issues) == 0:
            logger.warning(
                "Query returned 0 issues. Check the JQL and that the user "
                "can see the project."
            )
        return issues
