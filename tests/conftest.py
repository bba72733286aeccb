"""Shared Qt fixtures and an in-memory transport for the session tests."""
from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtWidgets import QApplication

from qcp_browser.session import RemoteSession


class FakeTransport(QObject):
    """Same surface as WebSocketTransport; the test drives both ends."""

    opened = pyqtSignal()
    closed = pyqtSignal()
    text_received = pyqtSignal(str)
    failed = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.url = None
        self.sent: list[str] = []
        self.close_calls = 0
        self._open = False

    # transport API
    def open(self, url: str):
        self.url = url

    def is_open(self) -> bool:
        return self._open

    def send_text(self, text: str) -> bool:
        if not self._open:
            return False
        self.sent.append(text)
        return True

    def close(self):
        self.close_calls += 1

    # server side
    def accept(self):
        self._open = True
        self.opened.emit()

    def push(self, text: str):
        self.text_received.emit(text)

    def drop(self):
        self._open = False
        self.closed.emit()

    def fail(self, message: str = "connection refused"):
        self.failed.emit(message)


class TransportFactory:
    def __init__(self):
        self.created: list[FakeTransport] = []

    def __call__(self, parent=None) -> FakeTransport:
        transport = FakeTransport(parent)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def opened_urls() -> list[str]:
    return []


@pytest.fixture
def session(qapp, factory, opened_urls) -> RemoteSession:
    def _opener(url: str) -> bool:
        opened_urls.append(url)
        return True

    return RemoteSession("ws://qcp.test/session", transport_factory=factory,
                         url_opener=_opener, request_timeout_ms=1000)


@pytest.fixture
def browse(session, factory):
    """Drive the session to the browsing state with the given listing payload."""

    def _browse(listing: str = "[]", hostname: str = "h", location: str = "/") -> FakeTransport:
        session.connect(hostname, location)
        transport = factory.last
        transport.accept()
        transport.push("connected")
        transport.push(f"list {listing}")
        transport.sent.clear()
        return transport

    return _browse
