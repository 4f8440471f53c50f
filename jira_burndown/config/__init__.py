"""Configuration module for Jira Burndown.

This module provides configuration loading and error handling utilities.
"""

from .exceptions import ConfigError
from .loader import config_to_options, validate_settings

__all__ = ["config_to_options", "validate_settings", "ConfigError"]
