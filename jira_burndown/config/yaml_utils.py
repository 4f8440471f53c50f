"""YAML utilities for Jira Burndown configuration files.

Mappings are loaded as ordered, case-insensitive dictionaries so that
`Output:`, `output:` and `OUTPUT:` all refer to the same section.
"""

import yaml
from pydicti import odicti


class CaseInsensitiveLoader(yaml.SafeLoader):  # pylint: disable=too-many-ancestors
    """A `SafeLoader` that builds `odicti` mappings."""


def _construct_mapping(loader, node):
    loader.flatten_mapping(node)
    return odicti(loader.construct_pairs(node))


CaseInsensitiveLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_mapping
)


def ordered_load(stream):
    """
    Load YAML from `stream` with ordered, case-insensitive mappings.
    """
    return yaml.load(stream, CaseInsensitiveLoader)
