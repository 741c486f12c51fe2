"""
Lufeed Parser Recovery
======================

Backoff and retry helpers.
"""

from .retry_logic import RetryConfig, RetryManager, base_backoff, calculate_backoff

__all__ = ["RetryConfig", "RetryManager", "base_backoff", "calculate_backoff"]
