"""Configuration exceptions for Jira Burndown."""


class ConfigError(Exception):
    """
    Exception raised for errors in the configuration.
    """
