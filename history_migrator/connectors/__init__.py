"""Origin and destination connectors."""

__all__ = ["memory"]
