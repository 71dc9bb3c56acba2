"""modalkeys: vi-style modal editing for textual text areas."""

__version__ = "0.4.0"
