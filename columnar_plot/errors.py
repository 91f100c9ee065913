from __future__ import annotations


class ChartDataError(ValueError):
    """Raised when group or dimension input cannot be charted."""
