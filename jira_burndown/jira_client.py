"""JIRA client utilities for Jira Burndown.

This module builds a `jira.JIRA` client from the `connection` options,
falling back to environment variables (and a `.env` file) for anything the
configuration file leaves out.
"""

import getpass
import logging
import os

from jira import JIRA

logger = logging.getLogger(__name__)


def _normalize_value(value):
    """Strip whitespace and surrounding quotes; empty values become None."""
    if not value:
        return None
    # Docker's --env-file keeps quotes from .env files
    value = str(value).strip().strip('"').strip("'").strip()
    return value or None


def get_jira_connection_params(connection, interactive=False):
    """Extract the JIRA url, username and password from connection options.

    If `interactive` is set, a missing username or password is prompted for.
    """
    url = _normalize_value(connection.get("domain") or os.environ.get("JIRA_URL"))
    username = _normalize_value(
        connection.get("username") or os.environ.get("JIRA_USERNAME")
    )
    password = _normalize_value(
        connection.get("password") or os.environ.get("JIRA_PASSWORD")
    )

    if interactive:
        if not username:
            username = input("Username: ")
        if not password:
            password = getpass.getpass("Password: ")

    missing_params = [
        name
        for name, value in (("url", url), ("username", username), ("password", password))
        if not value
    ]

    if missing_params:
        raise ValueError(
            f"Missing required JIRA connection parameters: "
            f"{', '.join(missing_params)}. "
            f"Provide them via connection config or environment variables "
            f"(JIRA_URL, JIRA_USERNAME, JIRA_PASSWORD)."
        )

    return url, username, password


def get_proxies(connection):
    """Return a `requests`-style proxies dict, or None."""
    proxies = {}
    if connection.get("http_proxy"):
        proxies["http"] = connection["http_proxy"]
    if connection.get("https_proxy"):
        proxies["https"] = connection["https_proxy"]
    return proxies or None


def create_jira_client(connection, interactive=False):
    """Create a JIRA client with the given connection options."""
    url, username, password = get_jira_connection_params(
        connection, interactive=interactive
    )

    logger.info("Connecting to %s", url)

    jira_options = {"server": url, "rest_api_version": 3}
    jira_options.update(connection.get("jira_client_options") or {})

    return JIRA(
        options=jira_options,
        basic_auth=(username, password),
        proxies=get_proxies(connection),
        get_server_info=connection.get("jira_server_version_check", True),
    )
