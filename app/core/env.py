import logging
import os
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

ENV_FILES = {
	"local": ".env",
	"staging": ".env.staging",
	"prod": ".env.production",
	"production": ".env.production",
}


def env_file_for(env_name: Optional[str]) -> str:
	"""Path of the dotenv file for an ENV name. ENV_FILE wins when it is set."""
	override = os.getenv("ENV_FILE")
	if override:
		return override
	filename = ENV_FILES.get((env_name or "local").lower(), ".env")
	return os.path.join(BASE_DIR, filename)


def load_environment() -> str:
	"""Load the dotenv file for the current ENV and return its path.

	Variables already in the process environment are not overridden, so the
	OPENAI_API_KEY of a deployment always beats a stray .env file.
	"""
	env_path = env_file_for(os.getenv("ENV"))
	if os.path.exists(env_path):
		load_dotenv(env_path, override=False)
		logger.debug(f"Loaded settings from {env_path}")
	else:
		logger.debug(f"No settings file at {env_path}, using process environment only")
	return env_path
