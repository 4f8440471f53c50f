"""Configuration loader for Jira Burndown."""

import logging
import os.path

from .exceptions import ConfigError
from .type_utils import (
    expand_key,
    force_date,
    force_float,
    force_int,
    force_list,
)
from .yaml_utils import ordered_load

logger = logging.getLogger(__name__)

SIZE_ATTRIBUTE = "Size"
PERCENT_COMPLETE_ATTRIBUTE = "Percent complete"

REQUIRED_ATTRIBUTES = [SIZE_ATTRIBUTE, PERCENT_COMPLETE_ATTRIBUTE]


def _create_default_options():
    """Create default options dictionary."""
    return {
        "connection": {
            "domain": None,
            "username": None,
            "password": None,
            "http_proxy": None,
            "https_proxy": None,
            "jira_server_version_check": True,
            "jira_client_options": {},
        },
        "settings": {
            "query": None,
            "attributes": {},
            "done_statuses": [],
            "max_results": None,
            "start_date": None,
            "as_of": None,
            "moving_avg_weeks": None,
            "percent_complete_scale": 100.0,
            "date_format": "%d/%m/%Y",
            "completion_data": [],
            "projection_data": [],
            "burndown_report": None,
            "burndown_chart": None,
            "burndown_chart_title": None,
        },
    }


def _parse_connection_config(config, options):
    """Parse connection configuration."""
    if "connection" not in config:
        return

    conn_config = config["connection"]
    conn_options = options["connection"]

    field_mappings = [
        ("domain", "domain"),
        ("username", "username"),
        ("password", "password"),
        ("http proxy", "http_proxy"),
        ("https proxy", "https_proxy"),
        ("jira client options", "jira_client_options"),
        ("jira server version check", "jira_server_version_check"),
    ]

    for config_key, option_key in field_mappings:
        if config_key in conn_config:
            conn_options[option_key] = conn_config[config_key]


def _parse_output_config(config, options):
    """Parse output configuration."""
    if "output" not in config or config["output"] is None:
        return

    output_config = config["output"]
    settings = options["settings"]

    if expand_key("output_directory") in output_config:
        options["output_directory"] = output_config[expand_key("output_directory")]

    if expand_key("start_date") in output_config:
        settings["start_date"] = force_date(
            "start_date", output_config[expand_key("start_date")]
        )

    if expand_key("as_of") in output_config:
        settings["as_of"] = force_date("as_of", output_config[expand_key("as_of")])

    for key in ["moving_avg_weeks", "max_results"]:
        if expand_key(key) in output_config:
            settings[key] = force_int(key, output_config[expand_key(key)])

    # Alias spelled out in full
    if "moving average weeks" in output_config:
        settings["moving_avg_weeks"] = force_int(
            "moving_average_weeks", output_config["moving average weeks"]
        )

    if expand_key("percent_complete_scale") in output_config:
        settings["percent_complete_scale"] = force_float(
            "percent_complete_scale",
            output_config[expand_key("percent_complete_scale")],
        )

    # Data files can be written in several formats at once
    for key in ["completion_data", "projection_data"]:
        if expand_key(key) in output_config:
            settings[key] = list(
                map(os.path.basename, force_list(output_config[expand_key(key)]))
            )

    for key in ["burndown_report", "burndown_chart"]:
        if expand_key(key) in output_config:
            settings[key] = os.path.basename(output_config[expand_key(key)])

    for key in ["date_format", "burndown_chart_title"]:
        if expand_key(key) in output_config:
            settings[key] = str(output_config[expand_key(key)])


def _parse_query_config(config, options):
    """Parse the JQL query."""
    if "query" in config:
        options["settings"]["query"] = config["query"]


def _parse_attributes_config(config, options):
    """Parse attributes (fields) and done statuses."""
    settings = options["settings"]

    if "attributes" in config and config["attributes"] is not None:
        attributes = config["attributes"]
        for name in REQUIRED_ATTRIBUTES:
            if name in attributes:
                settings["attributes"][name] = attributes[name]

    if "done statuses" in config:
        settings["done_statuses"] = [
            str(s) for s in force_list(config["done statuses"]) if s is not None
        ]


def validate_settings(settings):
    """Check the settings the calculators cannot do without."""
    if not settings["query"]:
        raise ConfigError("`Query` not found")

    for name in REQUIRED_ATTRIBUTES:
        if not settings["attributes"].get(name):
            raise ConfigError(f"`{name}` attribute not found in `Attributes`")

    if len(settings["done_statuses"]) == 0:
        raise ConfigError("`Done statuses` must list at least one status")

    if settings["start_date"] is None:
        raise ConfigError("`Start date` not found in `Output`")

    if settings["moving_avg_weeks"] is None:
        raise ConfigError("`Moving avg weeks` not found in `Output`")

    if settings["moving_avg_weeks"] < 1:
        raise ConfigError(
            f"`Moving avg weeks` must be at least 1, "
            f"got {settings['moving_avg_weeks']}"
        )

    if settings["percent_complete_scale"] <= 0:
        raise ConfigError(
            f"`Percent complete scale` must be positive, "
            f"got {settings['percent_complete_scale']}"
        )


def config_to_options(
    data, cwd=None, extended=False, validate=True, _visited_files=None
):
    """
    Parse YAML config data and return options dict.
    """
    if _visited_files is None:
        _visited_files = set()

    try:
        config = ordered_load(data)
    except Exception as e:
        raise ConfigError("Unable to parse YAML configuration file.") from e

    if config is None:
        raise ConfigError("Configuration file is empty") from None

    options = _create_default_options()

    # Handle extends configuration
    if "extends" in config:
        if cwd is None:
            raise ConfigError("`extends` is not supported here.")

        extends_filename = os.path.abspath(
            os.path.normpath(
                os.path.join(cwd, config["extends"].replace("/", os.path.sep))
            )
        )

        if not os.path.exists(extends_filename):
            raise ConfigError(
                f"File `{extends_filename}` referenced in `extends` not found."
            ) from None

        if extends_filename in _visited_files:
            raise ConfigError(
                f"Circular extends reference detected: {extends_filename}"
            ) from None

        _visited_files.add(extends_filename)

        logger.debug("Extending file %s", extends_filename)
        with open(extends_filename, encoding="utf-8") as extends_file:
            options = config_to_options(
                extends_file.read(),
                cwd=os.path.dirname(extends_filename),
                extended=True,
                _visited_files=_visited_files,
            )

    _parse_connection_config(config, options)
    _parse_output_config(config, options)
    _parse_query_config(config, options)
    _parse_attributes_config(config, options)

    if validate and not extended:
        validate_settings(options["settings"])

    return options
