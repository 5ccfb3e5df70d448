"""Guestmerge services."""

from guestmerge.services import merge

__all__ = ["merge"]
