"""
Marker clustering and visual-attribute engine for historical maps.
"""

__version__ = "0.1.0"
