# steamswitch package
# Game ownership cache and local Steam helpers for the multi-account switcher.

__version__ = "1.0.0"
