# qcp_browser/protocol.py
"""
Text framing for the qcp session protocol.

Every message is one WebSocket text frame ``<verb>[ <payload>]``. Outbound
payloads are compact JSON. Inbound frames are decoded once, here, into one of
the event classes below; the verb is matched exactly (``download-bulk`` is not
a ``download``).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict

from .entry import RemoteEntry, entries_to_wire, parse_entries
from .errors import ProtocolError

# outbound
CONNECT = "connect"
LIST = "list"
ENTER = "enter"
DOWNLOAD = "download"
DOWNLOAD_BULK = "download-bulk"
DISCONNECT = "disconnect"

# inbound
CONNECTED = "connected"
DISCONNECTED = "disconnected"
LISTED = "list"
ENTERED = "entered"
DOWNLOAD_LINK = "download"
REJECTED = "?"


class ConnectRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    location: str
    executable: Optional[str] = None


@dataclass(frozen=True)
class Command:
    verb: str
    payload: Optional[str] = None  # already JSON encoded

    def encode(self) -> str:
        return self.verb if self.payload is None else f"{self.verb} {self.payload}"


def connect(hostname: str, location: str, executable: str | None = None) -> Command:
    req = ConnectRequest(hostname=hostname, location=location, executable=executable or None)
    return Command(CONNECT, req.model_dump_json(exclude_none=True))


def list_files() -> Command:
    return Command(LIST)


def enter(entry: RemoteEntry) -> Command:
    return Command(ENTER, entry.to_wire())


def download(entry: RemoteEntry) -> Command:
    return Command(DOWNLOAD, entry.to_wire())


def download_bulk(entries: Iterable[RemoteEntry]) -> Command:
    return Command(DOWNLOAD_BULK, entries_to_wire(entries))


def disconnect() -> Command:
    return Command(DISCONNECT)


# ---- inbound events ---------------------------------------------------------

@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Disconnected:
    pass


@dataclass(frozen=True)
class Listed:
    entries: tuple[RemoteEntry, ...]


@dataclass(frozen=True)
class Entered:
    path: Optional[str] = None


@dataclass(frozen=True)
class DownloadLink:
    url: str


@dataclass(frozen=True)
class Rejected:
    """The server did not understand a frame we sent; ``message`` is its echo."""
    message: str


@dataclass(frozen=True)
class Unknown:
    verb: str
    raw: str


Event = Union[Connected, Disconnected, Listed, Entered, DownloadLink, Rejected, Unknown]


def split_frame(text: str) -> tuple[str, Optional[str]]:
    verb, sep, payload = text.partition(" ")
    return verb, (payload if sep else None)


def _text_payload(verb: str, payload: str, raw: str) -> str:
    # a few servers quote these; the reference one sends them bare
    if payload.startswith('"'):
        try:
            value = json.loads(payload)
        except ValueError as e:
            raise ProtocolError(verb, f"bad quoted payload: {e}", raw) from e
        if not isinstance(value, str):
            raise ProtocolError(verb, "quoted payload is not a string", raw)
        return value
    return payload


def decode_event(text: str) -> Event:
    """Decode one inbound frame. Raises ProtocolError when a known verb has a bad payload."""
    verb, payload = split_frame(text)

    if verb == CONNECTED and payload is None:
        return Connected()

    if verb == DISCONNECTED and payload is None:
        return Disconnected()

    if verb == LISTED:
        if payload is None:
            raise ProtocolError(verb, "missing payload", text)
        return Listed(parse_entries(payload))

    if verb == ENTERED:
        if payload is None:
            return Entered()
        path = _text_payload(verb, payload, text)
        return Entered(path or None)

    if verb == DOWNLOAD_LINK:
        url = _text_payload(verb, payload or "", text).strip()
        if not url:
            raise ProtocolError(verb, "missing url", text)
        # anything after the url is not ours to interpret
        return DownloadLink(url.split(" ", 1)[0])

    if verb == REJECTED:
        return Rejected(payload or "")

    return Unknown(verb, text)
