"""Content visibility module."""

from .filtering import filter_leaf, filter_tree
from .service import ContentService


__all__ = ["ContentService", "filter_leaf", "filter_tree"]
