"""
Per-channel noise filters applied to raw ticks before any geometry.

Bundled coefficient resources:
    we: Wheel encoder deltas (shared shape, one instance per wheel)
    ns_x, ns_y, ns_theta: North-star beacon channels
"""

from posefusion.filters.fir import (
    FILTER_DATA_DIR,
    SignalFilter,
    load_coefficients,
    parse_coefficients,
    resolve_filter_resource,
)

__all__ = [
    "FILTER_DATA_DIR",
    "SignalFilter",
    "load_coefficients",
    "parse_coefficients",
    "resolve_filter_resource",
]
