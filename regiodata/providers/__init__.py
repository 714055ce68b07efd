"""Fetch collaborators for statistical APIs."""
from .base import BaseProvider
from .eurostat import EurostatProvider

__all__ = ['BaseProvider', 'EurostatProvider']
