"""Natural-language query-to-aggregation engine."""

__version__ = "1.0.0"
