"""
Lufeed Parser Configuration Package
===================================
"""

from .settings import LufeedSettings, ProxyEntry, get_settings, load_settings

__all__ = ["LufeedSettings", "ProxyEntry", "get_settings", "load_settings"]
