"""
Configuration for the historical map engine.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
