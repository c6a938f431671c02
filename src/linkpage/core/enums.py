"""Enums for the LinkPage application."""

from enum import Enum


class Theme(str, Enum):
    """Public profile page themes."""

    GRADIENT = "gradient"
    DARK = "dark"
    LIGHT = "light"


class AnalyticType(str, Enum):
    """Kinds of analytics events."""

    VIEW = "view"
    CLICK = "click"


DEFAULT_THEME = Theme.GRADIENT
DEFAULT_LINK_ICON = "link"
