"""
Utility functions for the trip timeline assistant.
"""

from .dates import normalize_date_only

__all__ = ['normalize_date_only']
