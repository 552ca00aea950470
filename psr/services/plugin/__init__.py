"""Reading the plugin being released from its zip archive."""

from .archive import read_plugin_archive
from .descriptor import Compatibility, PluginDescriptor

__all__ = ["Compatibility", "PluginDescriptor", "read_plugin_archive"]
