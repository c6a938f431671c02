"""LinkPage: link-in-bio profiles with click analytics."""

__version__ = "1.0.0"
