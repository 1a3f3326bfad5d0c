"""Shared utility helpers for the user console."""

from userconsole.utils.string_helpers import JsonRow, JsonValue, matches_term

__all__ = ["JsonRow", "JsonValue", "matches_term"]
