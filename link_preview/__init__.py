"""Link preview unfurling: metadata extraction, image persistence and reconciliation."""

__version__ = "0.1.0"
