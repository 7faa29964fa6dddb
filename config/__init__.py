"""
Config module - Default settings for the extractor.
"""

from .settings import DEFAULT_SETTINGS, PLACEHOLDER_EMAIL, PLACEHOLDER_TOKEN

__all__ = [
    'DEFAULT_SETTINGS',
    'PLACEHOLDER_EMAIL',
    'PLACEHOLDER_TOKEN',
]
