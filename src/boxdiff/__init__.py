"""boxdiff: change and risk analysis for template box updates."""

__version__ = "0.1.0"
