from typing import Any


class CDPError(Exception):
	"""Base class for all dom-lens protocol errors"""

	message: str
	details: dict[str, Any] | None = None

	def __init__(self, message: str, details: dict[str, Any] | None = None):
		self.message = message
		super().__init__(message)
		self.details = details

	def __str__(self) -> str:
		if self.details:
			return f'{self.message} ({self.details})'
		return self.message


class CDPTimeoutError(CDPError):
	"""A command did not receive a reply within its time budget"""

	def __init__(self, method: str, request_id: int, timeout: float):
		super().__init__(
			f'CDP command {method} timed out after {timeout:.1f}s',
			{'method': method, 'request_id': request_id, 'timeout': timeout},
		)
		self.method = method
		self.request_id = request_id
		self.timeout = timeout


class CDPCommandError(CDPError):
	"""The browser rejected a command or the transport failed while sending it"""

	def __init__(self, method: str, request_id: int, reason: str):
		super().__init__(f'CDP command {method} failed: {reason}', {'method': method, 'request_id': request_id})
		self.method = method
		self.request_id = request_id
		self.reason = reason


class TargetNotAttachedError(CDPError):
	"""No debugger session is attached to a page target"""

	def __init__(self, message: str = 'Debugger not attached - call initialize() first'):
		super().__init__(message)


class DOMCaptureError(CDPError):
	"""The base DOM capture could not be obtained, so no view can be built"""


class ElementResolutionError(CDPError):
	"""None of the coordinate resolution strategies located the element on screen"""

	def __init__(self, backend_node_id: int, reason: str = 'all coordinate resolution methods failed'):
		super().__init__(f'Could not resolve element {backend_node_id}: {reason}', {'backend_node_id': backend_node_id})
		self.backend_node_id = backend_node_id
