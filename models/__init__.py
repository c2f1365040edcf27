"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.library_item import LibraryItem, from_raw_metadata
from models.scanned_item import ScannedItem, UserPreferences
from models.vibes import format_vibes, normalize

__all__ = ["LibraryItem", "ScannedItem", "UserPreferences", "format_vibes", "from_raw_metadata", "normalize"]
