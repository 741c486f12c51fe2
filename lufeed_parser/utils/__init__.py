"""
Lufeed Parser Utilities
=======================

Logging, exceptions and URL helpers shared across components.
"""
