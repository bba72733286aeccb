# qcp_browser/transport.py
from PyQt5.QtCore import QObject, pyqtSignal, QUrl
from PyQt5.QtWebSockets import QWebSocket
from PyQt5.QtNetwork import QAbstractSocket

from .logutil import get_logger, safe_preview

log = get_logger("transport")


class WebSocketTransport(QObject):
	"""
	One text-framed WebSocket. The session owns exactly one of these at a time
	and throws it away once ``closed`` fires.
	"""
	opened = pyqtSignal()
	closed = pyqtSignal()
	text_received = pyqtSignal(str)
	failed = pyqtSignal(str)

	def __init__(self, parent=None):
		super().__init__(parent)
		self.url = ""
		self.ws = QWebSocket()

		# errorOccurred only exists on newer PyQt5 builds
		if hasattr(self.ws, "errorOccurred"):
			self.ws.errorOccurred.connect(self._on_error)
		else:
			self.ws.error.connect(self._on_error)

		self.ws.connected.connect(self._on_connected)
		self.ws.disconnected.connect(self._on_disconnected)
		self.ws.textMessageReceived.connect(self._on_text)

	def open(self, url: str):
		self.url = url
		log.info("opening %s", url)
		self.ws.open(QUrl(url))

	def is_open(self) -> bool:
		return self.ws.state() == QAbstractSocket.ConnectedState

	def send_text(self, text: str) -> bool:
		if not self.is_open():
			log.warning("dropping frame, socket not open: %s", safe_preview(text, limit=80))
			return False
		self.ws.sendTextMessage(text)
		return True

	def close(self):
		self.ws.close()

	# -------- slots --------
	def _on_connected(self):
		log.info("socket open %s", self.url)
		self.opened.emit()

	def _on_disconnected(self):
		log.info("socket closed %s", self.url)
		self.closed.emit()

	def _on_text(self, text: str):
		self.text_received.emit(text)

	def _on_error(self, err):
		# err is an enum int in Qt5; fall back to the socket's own text
		msg = self.ws.errorString() or str(err)
		log.error("socket error %s: %s", self.url, msg)
		self.failed.emit(msg)
