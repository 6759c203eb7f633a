"""Page configuration files and loaders.

UI labels for the event pages live in JSON files next to this module so
they can be changed without touching page code.
"""

from .defaults import get_config_value, load_config

__all__ = ['load_config', 'get_config_value']
