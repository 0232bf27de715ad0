from dom_lens.config import CONFIG
from dom_lens.logging_config import setup_logging

if CONFIG.DOM_LENS_SETUP_LOGGING:
	setup_logging()

from dom_lens.cdp import CDPGateway  # noqa: E402
from dom_lens.dom import DomService, SerializationConfig, SerializedView  # noqa: E402
from dom_lens.interaction import ElementInteractionService  # noqa: E402

__all__ = [
	'CDPGateway',
	'DomService',
	'ElementInteractionService',
	'SerializationConfig',
	'SerializedView',
	'setup_logging',
]
