"""Utility functions for regiodata."""
from .cube_index import cube_cardinality, flat_index, flat_index_for, unflatten_index

__all__ = [
    'cube_cardinality',
    'flat_index',
    'flat_index_for',
    'unflatten_index',
]
