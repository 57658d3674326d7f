"""codescout — incremental semantic index and retrieval over a source tree."""

__version__ = "0.1.0"
