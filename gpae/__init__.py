"""GPAE - Planning Auto École: booking API for a driving school."""

__version__ = "1.0.0"
