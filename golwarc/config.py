import os
import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_loaded = load_dotenv()
if not _loaded and Path(".env").exists():
	raise RuntimeError(".env file present but failed to load")


def get_str_env(name: str, default: str) -> str:
	raw = os.getenv(name)
	if raw is None or raw.strip() == "":
		return default
	return raw


def get_int_env(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return int(raw)
	except ValueError:
		logger.warning("Invalid %s: %r; using %s", name, raw, default)
		return default


def get_float_env(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return float(raw)
	except ValueError:
		logger.warning("Invalid %s: %r; using %s", name, raw, default)
		return default


def log_level() -> str:
	return get_str_env("LOG_LEVEL", "INFO").strip().upper()
