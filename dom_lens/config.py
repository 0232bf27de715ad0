"""Environment-backed configuration for dom-lens."""

import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
	return value.strip().lower()[:1] in 'ty1'


class Config:
	"""Lazily reads DOM_LENS_* environment variables.

	Every property re-reads the environment so tests and embedding hosts can
	change settings after import.
	"""

	@property
	def DOM_LENS_LOGGING_LEVEL(self) -> str:
		return os.getenv('DOM_LENS_LOGGING_LEVEL', 'info').lower()

	@property
	def DOM_LENS_SETUP_LOGGING(self) -> bool:
		return _as_bool(os.getenv('DOM_LENS_SETUP_LOGGING', 'true') or 'true')

	@property
	def DOM_LENS_CDP_URL(self) -> str:
		return os.getenv('DOM_LENS_CDP_URL', 'http://localhost:9222')

	@property
	def DOM_LENS_CDP_TIMEOUT(self) -> float:
		return float(os.getenv('DOM_LENS_CDP_TIMEOUT', '10'))

	@property
	def DOM_LENS_KEYSTROKE_DELAY_MS(self) -> int:
		return int(os.getenv('DOM_LENS_KEYSTROKE_DELAY_MS', '18'))


CONFIG = Config()
