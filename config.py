"""
Centralized configuration for SplitSheet with environment
"""

import os

# API settings
API_TITLE = os.getenv("SPLITSHEET_API_TITLE", "SplitSheet API")
API_DESCRIPTION = os.getenv(
    "SPLITSHEET_API_DESCRIPTION",
    "Shared expense balances and settlement plans for small groups",
)
API_VERSION = os.getenv("SPLITSHEET_API_VERSION", "1.0.0")

# Server settings
HOST = os.getenv("SPLITSHEET_HOST", "0.0.0.0")
PORT = int(os.getenv("SPLITSHEET_PORT", "8000"))
LOG_LEVEL = os.getenv("SPLITSHEET_LOG_LEVEL", "INFO").upper()

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("SPLITSHEET_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
