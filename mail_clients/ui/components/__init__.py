"""Reusable UI components for terminal output."""

from .prompts import InputPrompt
from .messages import StatusMessage

__all__ = ["InputPrompt", "StatusMessage"]
