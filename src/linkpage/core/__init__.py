"""Shared enums."""
