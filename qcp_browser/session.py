# qcp_browser/session.py
from __future__ import annotations

import logging
import posixpath
from collections import deque
from dataclasses import dataclass
from functools import partial
from typing import Callable, Literal, Optional

from PyQt5.QtCore import QObject, QTimer, QUrl, pyqtSignal
from PyQt5.QtGui import QDesktopServices

from . import config, protocol
from .entry import RemoteEntry, with_parent
from .errors import ProtocolError
from .logutil import get_logger, safe_preview
from .transport import WebSocketTransport

log = get_logger("session")

STATE = Literal["disconnected", "connecting", "connected", "browsing", "closing"]
DISCONNECTED = "disconnected"
CONNECTING = "connecting"
CONNECTED = "connected"
BROWSING = "browsing"
CLOSING = "closing"

_LIVE = (CONNECTED, BROWSING)
_NAVIGATION = (protocol.LIST, protocol.ENTER)

# inbound verb -> the request verbs it answers
_ANSWERS = {
	protocol.LISTED: (protocol.LIST,),
	protocol.ENTERED: (protocol.ENTER,),
	protocol.DOWNLOAD_LINK: (protocol.DOWNLOAD, protocol.DOWNLOAD_BULK),
}


@dataclass(frozen=True)
class _Request:
	verb: str
	seq: int
	entry: Optional[RemoteEntry] = None


def _open_in_browser(url: str) -> bool:
	return QDesktopServices.openUrl(QUrl(url))


class RemoteSession(QObject):
	"""
	The one logical connection to a qcp server plus its navigation state.

	All user intents go through the public methods, which return True only when
	a frame was actually sent. Everything the server says arrives through the
	transport and is turned into signals. Nothing else writes to this state.

	The server answers every request with exactly one frame, in order: the
	expected reply, ``? <frame>`` or a bare error text. Requests are queued as
	they are sent and each reply is paired with the oldest one, so a late
	answer still lands on the request that caused it.

	Navigation is single-flight: while an ``enter`` or ``list`` is waiting for
	its answer, further ``enter`` calls are refused. A timeout releases that
	lock without forgetting the request. A listing that answers anything but
	the latest ``list`` is stale and dropped.
	"""
	state_changed = pyqtSignal(str)
	affordances_changed = pyqtSignal()   # can_connect / can_disconnect may have moved
	listing_changed = pyqtSignal(object)   # tuple[RemoteEntry, ...], ".." first
	location_changed = pyqtSignal(str)
	selection_changed = pyqtSignal(int)    # number of selected entries
	download_ready = pyqtSignal(str)       # url handed to the opener
	status_changed = pyqtSignal(str, str)  # level, message
	frame_logged = pyqtSignal(str, str)    # ">" / "<", frame text

	def __init__(self, endpoint: str = config.ENDPOINT, *,
				 transport_factory: Callable[..., WebSocketTransport] | None = None,
				 url_opener: Callable[[str], bool] | None = None,
				 request_timeout_ms: int = config.REQUEST_TIMEOUT_MS,
				 parent: Optional[QObject] = None):
		super().__init__(parent)
		self.endpoint = endpoint
		self._transport_factory = transport_factory or WebSocketTransport
		self._open_url = url_opener or _open_in_browser
		self.request_timeout_ms = request_timeout_ms

		self._transport = None
		self._state: STATE = DISCONNECTED
		self._request: protocol.ConnectRequest | None = None
		self._greeting_pending = False

		self._location = ""
		self._entries: tuple[RemoteEntry, ...] = ()
		self._selected: set[RemoteEntry] = set()

		# request bookkeeping
		self._inflight: deque[_Request] = deque()
		self._seq = 0
		self._released_seq = 0   # requests up to this seq timed out and no longer lock navigation
		self._list_seq = 0       # most recent list request

		self._timer = QTimer(self)
		self._timer.setSingleShot(True)
		self._timer.timeout.connect(self._on_timeout)
		self._timer_reason: str | None = None

	# ---- read-only view of the state -----------------------------------------

	@property
	def state(self) -> str:
		return self._state

	@property
	def location(self) -> str:
		return self._location

	@property
	def entries(self) -> tuple[RemoteEntry, ...]:
		return self._entries

	@property
	def selection(self) -> tuple[RemoteEntry, ...]:
		"""Selected entries in listing order."""
		return tuple(e for e in self._entries if e in self._selected)

	@property
	def is_navigating(self) -> bool:
		return self._locking(*_NAVIGATION)

	@property
	def has_transport(self) -> bool:
		return self._transport is not None

	@property
	def can_connect(self) -> bool:
		if self._state == DISCONNECTED:
			return True
		# the server dropped the remote side but our socket is still up
		return (self._state == CONNECTING and not self._greeting_pending
				and self._transport is not None and self._transport.is_open())

	@property
	def can_disconnect(self) -> bool:
		return self._transport is not None and self._state != CLOSING and not self.can_connect

	# ---- user intents ----------------------------------------------------------

	def connect(self, hostname: str, location: str, executable: str | None = None) -> bool:
		if not self.can_connect:
			log.debug("connect ignored in state %s", self._state)
			return False

		self._request = protocol.ConnectRequest(hostname=hostname, location=location,
												executable=executable or None)
		self._set_location(location)

		if self._transport is not None:
			return self._send_connect()

		transport = self._transport_factory(self)
		self._transport = transport
		transport.opened.connect(partial(self._on_opened, transport))
		transport.closed.connect(partial(self._on_closed, transport))
		transport.failed.connect(partial(self._on_failed, transport))
		transport.text_received.connect(partial(self._on_text, transport))

		self._greeting_pending = True
		self._set_state(CONNECTING)
		self._arm("greeting")
		self._report("info", f"Connecting to {hostname or 'server'}…")
		transport.open(self.endpoint)
		return True

	def disconnect(self) -> bool:
		if not self.can_disconnect:
			log.debug("disconnect ignored in state %s", self._state)
			return False

		self._set_greeting(False)
		self._clear_requests()
		self._set_state(CLOSING)
		if self._transport.is_open():
			self._send(protocol.disconnect())
			self._arm("closing")
		else:
			# socket still handshaking; nothing to tell the server
			self._teardown(close=True)
		return True

	def list_files(self) -> bool:
		if self._state not in _LIVE:
			log.debug("list ignored in state %s", self._state)
			return False
		if self._locking(protocol.LIST):
			log.debug("list coalesced with outstanding seq=%s", self._list_seq)
			return False
		return self._request_list()

	def enter(self, entry: RemoteEntry) -> bool:
		if self._state != BROWSING:
			log.debug("enter %r ignored in state %s", entry.name, self._state)
			return False
		if not entry.is_directory:
			log.debug("enter %r ignored, not a directory", entry.name)
			return False
		if self.is_navigating:
			self._report("warning", "Still waiting for the server to finish the last navigation")
			return False
		return self._send_request(protocol.enter(entry), entry)

	def download(self, entry: RemoteEntry) -> bool:
		if self._state != BROWSING:
			log.debug("download %r ignored in state %s", entry.name, self._state)
			return False
		return self._send_request(protocol.download(entry), entry)

	def set_selected(self, entry: RemoteEntry, selected: bool = True):
		if entry not in self._entries:
			return
		before = len(self._selected)
		if selected:
			self._selected.add(entry)
		else:
			self._selected.discard(entry)
		if len(self._selected) != before:
			self.selection_changed.emit(len(self._selected))

	def clear_selection(self):
		if self._selected:
			self._selected.clear()
			self.selection_changed.emit(0)

	def download_selected(self) -> bool:
		"""One ``download-bulk`` round trip; the server answers with a single link."""
		if self._state != BROWSING or not self._selected:
			return False
		if not self._send_request(protocol.download_bulk(self.selection)):
			return False
		self.clear_selection()
		return True

	# ---- internals -------------------------------------------------------------

	def _set_state(self, state: str):
		if state == self._state:
			return
		log.debug("state %s -> %s", self._state, state)
		self._state = state
		self.state_changed.emit(state)
		self.affordances_changed.emit()

	def _set_greeting(self, pending: bool):
		if pending != self._greeting_pending:
			self._greeting_pending = pending
			self.affordances_changed.emit()

	def _set_location(self, location: str):
		if location != self._location:
			self._location = location
			self.location_changed.emit(location)

	def _set_entries(self, entries: tuple[RemoteEntry, ...]):
		self._entries = entries
		self.clear_selection()
		self.listing_changed.emit(entries)

	def _report(self, level: str, message: str):
		log.log(getattr(logging, level.upper(), logging.INFO), message)
		self.status_changed.emit(level, message)

	def _arm(self, reason: str):
		self._timer_reason = reason
		self._timer.start(self.request_timeout_ms)

	def _disarm(self, reason: str):
		if self._timer_reason == reason:
			self._timer.stop()
			self._timer_reason = None

	def _send(self, cmd: protocol.Command) -> bool:
		if self._transport is None:
			return False
		text = cmd.encode()
		if not self._transport.send_text(text):
			return False
		log.debug("> %s", safe_preview(text))
		self.frame_logged.emit(">", text)
		return True

	def _send_request(self, cmd: protocol.Command, entry: RemoteEntry | None = None) -> bool:
		if not self._send(cmd):
			return False
		self._seq += 1
		self._inflight.append(_Request(cmd.verb, self._seq, entry))
		if cmd.verb in _NAVIGATION:
			self._arm("navigation")
		return True

	def _send_connect(self) -> bool:
		req = self._request
		if not self._send(protocol.connect(req.hostname, req.location, req.executable)):
			return False
		self._set_greeting(True)
		self._arm("greeting")
		return True

	def _request_list(self) -> bool:
		if not self._send_request(protocol.list_files()):
			return False
		self._list_seq = self._seq
		return True

	def _locking(self, *verbs: str) -> bool:
		return any(r.verb in verbs and r.seq > self._released_seq for r in self._inflight)

	def _take_reply(self, *verbs: str) -> _Request | None:
		"""Pop the oldest request if the reply at hand answers it."""
		if self._inflight and self._inflight[0].verb in verbs:
			return self._inflight.popleft()
		return None

	def _clear_requests(self):
		self._inflight.clear()
		self._released_seq = self._seq
		self._disarm("navigation")

	def _navigation_settled(self):
		if not self.is_navigating:
			self._disarm("navigation")

	def _teardown(self, *, close: bool):
		transport, self._transport = self._transport, None
		self._timer.stop()
		self._timer_reason = None
		if transport is not None:
			if close:
				transport.close()
			transport.deleteLater()
		self._greeting_pending = False
		self._clear_requests()
		self._set_entries(())
		self._set_location("")
		self._set_state(DISCONNECTED)

	# ---- transport slots -------------------------------------------------------

	def _on_opened(self, transport):
		if transport is not self._transport:
			return
		if self._state != CONNECTING:
			return
		self._send_connect()

	def _on_closed(self, transport):
		if transport is not self._transport:
			return
		if self._state != CLOSING:
			self._report("warning", "Connection closed")
		else:
			self._report("info", "Disconnected")
		self._teardown(close=False)

	def _on_failed(self, transport, message: str):
		if transport is not self._transport:
			return
		self._report("error", f"Connection error: {message}")
		self._teardown(close=True)

	def _on_timeout(self):
		reason, self._timer_reason = self._timer_reason, None
		if reason == "greeting":
			self._report("error", "The server did not answer the connect request")
			self._teardown(close=True)
		elif reason == "closing":
			log.info("server did not acknowledge disconnect; closing socket")
			self._teardown(close=True)
		elif reason == "navigation":
			# unlock; the requests stay queued so late replies still pair up
			self._released_seq = self._seq
			self._report("warning", "The server did not answer in time")

	def _on_text(self, transport, text: str):
		if transport is not self._transport:
			return
		log.debug("< %s", safe_preview(text))
		self.frame_logged.emit("<", text)
		try:
			event = protocol.decode_event(text)
		except ProtocolError as e:
			log.warning("discarding frame: %s", e, extra={"raw": safe_preview(e.raw, limit=120)})
			self._report("error", f"Bad '{e.verb}' message from server: {e.reason}")
			# it still answered its request
			self._take_reply(*_ANSWERS.get(e.verb, ()))
			self._navigation_settled()
			return
		self._dispatch(event)

	# ---- inbound events --------------------------------------------------------

	def _dispatch(self, event: protocol.Event):
		if isinstance(event, protocol.Connected):
			self._on_connected()
		elif isinstance(event, protocol.Disconnected):
			self._on_disconnected()
		elif isinstance(event, protocol.Listed):
			self._on_listed(event.entries)
		elif isinstance(event, protocol.Entered):
			self._on_entered(event.path)
		elif isinstance(event, protocol.DownloadLink):
			self._on_download_link(event.url)
		elif isinstance(event, protocol.Rejected):
			self._on_rejected(event.message)
		else:
			self._on_unknown(event)

	def _on_connected(self):
		if self._state != CONNECTING or not self._greeting_pending:
			log.debug("unexpected 'connected' in state %s", self._state)
			return
		self._greeting_pending = False
		self._disarm("greeting")
		self._set_state(CONNECTED)
		host = self._request.hostname if self._request else ""
		self._report("info", f"Connected to {host or 'server'}")
		self._request_list()

	def _on_disconnected(self):
		if self._state == CLOSING:
			self._transport.close()
		elif self._state in _LIVE:
			self._clear_requests()
			self._set_entries(())
			self._set_state(CONNECTING)
			self._report("warning", "The server ended the remote session")
		elif self._state == CONNECTING and self._greeting_pending:
			self._disarm("greeting")
			self._set_greeting(False)
			self._report("warning", "The server refused the connect request")

	def _on_listed(self, entries: tuple[RemoteEntry, ...]):
		if self._state not in _LIVE:
			log.debug("listing ignored in state %s", self._state)
			return
		req = self._take_reply(protocol.LIST)
		self._navigation_settled()
		if req is not None and req.seq != self._list_seq:
			log.debug("dropping stale listing seq=%s latest=%s", req.seq, self._list_seq)
			return
		self._set_state(BROWSING)
		self._set_entries(with_parent(entries))

	def _on_entered(self, path: str | None):
		if self._state not in _LIVE:
			log.debug("'entered' ignored in state %s", self._state)
			return
		req = self._take_reply(protocol.ENTER)
		if path:
			self._set_location(path)
		elif req is not None:
			# the server joins the name onto its current directory
			self._set_location(posixpath.normpath(posixpath.join(self._location or ".", req.entry.name)))
		self._navigation_settled()
		# a list already queued behind the enter will describe the new directory
		if not any(r.verb == protocol.LIST for r in self._inflight):
			self._request_list()

	def _on_download_link(self, url: str):
		self._take_reply(protocol.DOWNLOAD, protocol.DOWNLOAD_BULK)
		log.info("download link %s", url)
		self.download_ready.emit(url)
		if self._open_url(url) is False:
			self._report("warning", f"Could not open {url}")
		else:
			self._report("info", f"Opened download link {url}")

	def _on_rejected(self, message: str):
		verb, _ = protocol.split_frame(message)
		self._report("warning", f"Server rejected '{verb}'")
		self._take_reply(verb)
		self._navigation_settled()

	def _on_unknown(self, event: protocol.Unknown):
		# anything else is the server's error text for the oldest request
		if self._state == CONNECTING and self._greeting_pending:
			self._disarm("greeting")
			self._set_greeting(False)
			self._report("error", f"Connect failed: {safe_preview(event.raw, limit=160)}")
			return
		if not self._inflight:
			log.debug("ignoring unknown verb %r", event.verb)
			return
		req = self._inflight.popleft()
		self._report("error", f"'{req.verb}' failed: {safe_preview(event.raw, limit=160)}")
		self._navigation_settled()
