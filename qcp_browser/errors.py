# qcp_browser/errors.py
from __future__ import annotations


class QcpError(Exception):
    """Base class for client-side errors."""


class ProtocolError(QcpError):
    """An inbound frame could not be decoded."""

    def __init__(self, verb: str, reason: str, raw: str = ""):
        self.verb = verb
        self.reason = reason
        self.raw = raw
        super().__init__(f"malformed '{verb}' frame: {reason}")
