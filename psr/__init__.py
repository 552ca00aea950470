"""psr - upload plugin binaries to the plugin store and request their release."""

__version__ = "0.3.0"
