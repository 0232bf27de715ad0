import asyncio
import itertools
import logging
from typing import Any

import httpx
from cdp_use import CDPClient

from dom_lens.cdp.views import CDPCommandError, CDPTimeoutError, TargetNotAttachedError
from dom_lens.config import CONFIG

logger = logging.getLogger(__name__)


async def resolve_websocket_url(cdp_url: str) -> str:
	"""Turn a DevTools HTTP root (or an explicit ws:// URL) into the browser websocket URL."""
	# If the cdp_url is already a websocket URL, use it as-is.
	if cdp_url.startswith('ws'):
		return cdp_url

	# Otherwise, treat it as the DevTools HTTP root and fetch the websocket URL.
	url = cdp_url.rstrip('/')
	if not url.endswith('/json/version'):
		url = url + '/json/version'
	async with httpx.AsyncClient() as client:
		version_info = await client.get(url)
		version_info.raise_for_status()
		return version_info.json()['webSocketDebuggerUrl']


class CDPGateway:
	"""
	Single command channel to one page target.

	Every command gets its own request id and a bounded wait. Replies are
	correlated by the underlying client on that id, never by method name, so
	concurrent commands of the same method cannot receive each other's reply.
	"""

	def __init__(
		self,
		cdp_url: str | None = None,
		timeout: float | None = None,
		client: CDPClient | None = None,
		session_id: str | None = None,
	):
		self.cdp_url = cdp_url or CONFIG.DOM_LENS_CDP_URL
		self.timeout = timeout if timeout is not None else CONFIG.DOM_LENS_CDP_TIMEOUT
		self.client: CDPClient | None = client
		self.session_id: str | None = session_id
		self.target_id: str | None = None
		# only close connections we opened ourselves
		self.owns_connection = client is None
		self._request_ids = itertools.count(1)

	@classmethod
	def from_client(cls, client: CDPClient, session_id: str, timeout: float | None = None) -> 'CDPGateway':
		"""Wrap an already attached client, e.g. one owned by an embedding host."""
		return cls(client=client, session_id=session_id, timeout=timeout)

	@property
	def is_attached(self) -> bool:
		return self.client is not None and self.session_id is not None

	def next_request_id(self) -> int:
		return next(self._request_ids)

	async def connect(self, target_id: str | None = None) -> str:
		"""Open the websocket (if needed) and attach to a page target. Returns the session id."""
		if self.is_attached:
			assert self.session_id is not None
			return self.session_id

		if self.client is None:
			ws_url = await resolve_websocket_url(self.cdp_url)
			logger.debug(f'🔌 Connecting to {ws_url}')
			self.client = CDPClient(ws_url)
			await self.client.start()
			self.owns_connection = True

		targets = await self._call('Target.getTargets', None, None)
		page_targets = [t for t in targets.get('targetInfos', []) if t.get('type') == 'page']
		if target_id:
			page_targets = [t for t in page_targets if t.get('targetId') == target_id]
		if not page_targets:
			raise TargetNotAttachedError(f'No page target available to attach to (requested: {target_id or "any"})')

		self.target_id = page_targets[0]['targetId']
		attached = await self._call('Target.attachToTarget', {'targetId': self.target_id, 'flatten': True}, None)
		self.session_id = attached['sessionId']
		logger.debug(f'🔌 Attached to target {self.target_id} (session {self.session_id})')
		return self.session_id

	async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
		"""Send one command on the attached session and wait for its reply."""
		if not self.is_attached:
			raise TargetNotAttachedError()
		return await self._call(method, params, self.session_id)

	async def _call(self, method: str, params: dict[str, Any] | None, session_id: str | None) -> dict[str, Any]:
		if self.client is None:
			raise TargetNotAttachedError()

		request_id = self.next_request_id()
		try:
			result = await asyncio.wait_for(
				self.client.send_raw(method=method, params=params, session_id=session_id),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			logger.warning(f'⏱️ {method} (request {request_id}) timed out after {self.timeout:.1f}s')
			raise CDPTimeoutError(method, request_id, self.timeout)
		except Exception as e:
			raise CDPCommandError(method, request_id, str(e)) from e

		return result or {}

	async def disconnect(self) -> None:
		if self.client is not None and self.owns_connection:
			try:
				await self.client.stop()
			except Exception as e:
				logger.debug(f'Error while closing CDP connection: {type(e).__name__}: {e}')
		if self.owns_connection:
			self.client = None
		self.session_id = None
		self.target_id = None

	async def __aenter__(self) -> 'CDPGateway':
		await self.connect()
		return self

	async def __aexit__(self, exc_type, exc_value, traceback) -> None:
		await self.disconnect()
