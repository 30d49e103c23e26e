"""
Basic configuration

- CORS origins for development and production
- Data directory and quota defaults
- Supports environment variables for deployment overrides
"""
import os

# Default localhost origins for development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]

# Get additional CORS origins from environment variable
ADDITIONAL_CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []

# Filter out empty strings from split
ADDITIONAL_CORS_ORIGINS = [origin.strip() for origin in ADDITIONAL_CORS_ORIGINS if origin.strip()]

# Combine default and additional origins
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + ADDITIONAL_CORS_ORIGINS

# Directory holding one JSON document per logical store name
DATA_DIR = os.getenv("DATA_DIR", "data")

# Value every drug's total quota is reset to at the start of a new month
DEFAULT_TOTAL_QUOTA = int(os.getenv("DEFAULT_TOTAL_QUOTA", "10000"))

DEFAULT_TOP_UP_EXPIRY_DAYS = int(os.getenv("DEFAULT_TOP_UP_EXPIRY_DAYS", "30"))

# Deliveries are stamped in the clinic's local time
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Tehran")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
