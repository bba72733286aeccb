"""Remote file browser client speaking the qcp session protocol over a WebSocket."""

__version__ = "0.3.0"
