"""
Configuration settings and constants for the trip timeline assistant.
"""

from .settings import (
    GEMINI_API_KEY,
    GEMINI_MODEL_CONFIG,
    IMPORT_PROMPT,
    MAPS_API_KEY,
    WEATHER_API_KEY,
    OWM_ONECALL_ENDPOINT,
    PDF_EXTRACT_API_URL,
    SYSTEM_PROMPT,
    validate_api_keys
)

__all__ = [
    'GEMINI_API_KEY',
    'GEMINI_MODEL_CONFIG',
    'IMPORT_PROMPT',
    'MAPS_API_KEY',
    'WEATHER_API_KEY',
    'OWM_ONECALL_ENDPOINT',
    'PDF_EXTRACT_API_URL',
    'SYSTEM_PROMPT',
    'validate_api_keys'
]
