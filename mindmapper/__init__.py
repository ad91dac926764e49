"""Mindmapper: turn free-form notes into editable mind maps."""

__version__ = "0.1.0"
