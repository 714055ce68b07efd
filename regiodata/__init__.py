"""Regional statistics from the Eurostat dissemination API."""

__version__ = "1.0.0"
