"""Contract dependency graph and impact analysis for versioned specs."""

__version__ = "0.3.0"
