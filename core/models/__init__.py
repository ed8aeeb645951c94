"""Core database models"""
from .children import Child
from .parent_preferences import ParentPreferences
from .videos import Video

__all__ = ["Child", "ParentPreferences", "Video"]
