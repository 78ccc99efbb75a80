"""
Utility functions for railgraph.

This module contains low-level helpers used across the system.
No domain logic should live here.
"""

from railgraph.utils.text import extract_json_object, truncate
from railgraph.utils.time import utc_now, iso_timestamp, is_even_utc_hour
from railgraph.utils.geometry import distance, step_towards, km_between

__all__ = [
    "extract_json_object",
    "truncate",
    "utc_now",
    "iso_timestamp",
    "is_even_utc_hour",
    "distance",
    "step_towards",
    "km_between",
]
