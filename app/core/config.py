import os

from app.core.env import load_environment

# Must run before any setting below is read
ENV_PATH = load_environment()

# Generation endpoint
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "60"))
GENERATION_MAX_ATTEMPTS = int(os.getenv("GENERATION_MAX_ATTEMPTS", "3"))

# Web layer
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
FRONTEND_URL_PROD = os.getenv("FRONTEND_URL_PROD")
GENERATION_RATE_LIMIT = os.getenv("GENERATION_RATE_LIMIT", "10/minute")
SESSION_CREATE_RATE_LIMIT = os.getenv("SESSION_CREATE_RATE_LIMIT", "30/minute")

# Idle sessions older than this are dropped when a new one is created
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "3600"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
