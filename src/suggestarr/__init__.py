"""Search-suggestion retrieval across engines with non-uniform protocols."""

__version__ = "0.1.0"
