from dom_lens.cdp.gateway import CDPGateway, resolve_websocket_url
from dom_lens.cdp.views import (
	CDPCommandError,
	CDPError,
	CDPTimeoutError,
	DOMCaptureError,
	ElementResolutionError,
	TargetNotAttachedError,
)

__all__ = [
	'CDPGateway',
	'resolve_websocket_url',
	'CDPError',
	'CDPCommandError',
	'CDPTimeoutError',
	'DOMCaptureError',
	'ElementResolutionError',
	'TargetNotAttachedError',
]
