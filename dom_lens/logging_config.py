import logging
import sys

from dom_lens.config import CONFIG

THIRD_PARTY_LOGGERS = ('websockets', 'httpx', 'httpcore', 'cdp_use', 'asyncio')


class DomLensFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:
		if isinstance(record.name, str) and record.name.startswith('dom_lens.'):
			# dom_lens.dom.serializer.paint_order -> paint_order
			record.name = record.name.split('.')[-1]
		return super().format(record)


def setup_logging(level: str | None = None) -> logging.Logger:
	"""Attach a stream handler to the dom_lens logger and quiet noisy libraries."""
	log_level = (level or CONFIG.DOM_LENS_LOGGING_LEVEL).upper()

	logger = logging.getLogger('dom_lens')
	if any(getattr(h, '_dom_lens_handler', False) for h in logger.handlers):
		logger.setLevel(log_level)
		return logger

	handler = logging.StreamHandler(sys.stdout)
	handler._dom_lens_handler = True  # type: ignore[attr-defined]
	handler.setFormatter(DomLensFormatter('%(levelname)-8s [%(name)s] %(message)s'))

	logger.addHandler(handler)
	logger.setLevel(log_level)
	logger.propagate = False

	for name in THIRD_PARTY_LOGGERS:
		third_party = logging.getLogger(name)
		third_party.setLevel(logging.WARNING)
		third_party.propagate = False

	return logger
