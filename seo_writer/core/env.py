# seo_writer/core/env.py

import os
from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

ENV_FILES = {
	"staging": ".env.staging",
	"prod": ".env.production",
	"production": ".env.production",
}


def _select_env_path() -> str:
	"""ENV_FILE wins; otherwise ENV picks the staging/production file, falling back to .env."""
	explicit = os.getenv("ENV_FILE")
	if explicit:
		return explicit

	env_name = os.getenv("ENV", "local").lower()
	candidate = os.path.join(PROJECT_ROOT, ENV_FILES.get(env_name, ".env"))
	if not os.path.exists(candidate):
		candidate = os.path.join(PROJECT_ROOT, ".env")
	return candidate


env_path = _select_env_path()
load_dotenv(env_path)
