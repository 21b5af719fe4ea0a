"""Cross-reference and document-state engine for long-form manuscripts."""

__version__ = "0.1.0"
