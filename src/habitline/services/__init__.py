"""Service module exports."""

from . import auth, completions, google_oauth, habits, tokens

__all__ = [
    "auth",
    "completions",
    "google_oauth",
    "habits",
    "tokens",
]
