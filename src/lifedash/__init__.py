"""Life dashboard API: health metrics and monthly budgets in one place."""

__version__ = "0.1.0"
