# qcp_browser/logutil.py
from __future__ import annotations
import json, logging, os, time
from logging.handlers import RotatingFileHandler

from colorama import Fore, Style, init as colorama_init

from . import config

_LOGGER_NAME = "qcp"  # package logger all children inherit from

_STD_KEYS = {
    "name","msg","args","levelname","levelno","pathname","filename","module",
    "exc_info","exc_text","stack_info","lineno","funcName","created","msecs",
    "relativeCreated","thread","threadName","processName","process","asctime",
    "taskName",
}

_LEVEL_COLORS = {
    "DEBUG": Style.DIM,
    "INFO": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Style.BRIGHT + Fore.RED,
}

def _ensure_dir(p: str) -> None:
    os.makedirs(p, exist_ok=True)

def _extras(record: logging.LogRecord):
    for k, v in record.__dict__.items():
        if k in _STD_KEYS or k.startswith("_"):
            continue
        yield k, v

class JSONLFormatter(logging.Formatter):
    """Strict JSON Lines formatter: one compact JSON object per log line."""
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": int(record.created * 1000),  # epoch ms
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        for k, v in _extras(record):
            try:
                json.dumps(v)
                base[k] = v
            except (TypeError, ValueError):
                base[k] = repr(v)
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, separators=(",", ":"), default=str)

class RichFormatter(logging.Formatter):
    """Readable console formatter with short timestamp + colored level."""
    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%H:%M:%S", time.localtime(record.created))
        lvl = record.levelname.ljust(5)
        if self.color:
            lvl = _LEVEL_COLORS.get(record.levelname, "") + lvl + Style.RESET_ALL
        extras = [f"{k}={safe_preview(v, limit=160)}" for k, v in _extras(record)]
        extras_s = (" " + " ".join(extras)) if extras else ""
        out = f"{ts} {lvl} [{record.name}] {record.getMessage()}{extras_s}"
        if record.exc_info:
            out += "\n" + self.formatException(record.exc_info)
        return out

def setup_logging(level: str | None = None, log_dir: str | None = None) -> logging.Logger:
    """
    Install handlers on the package logger:
      - human console logs (level from QCP_LOG_LEVEL unless given)
      - JSONL rotating file logs when a log dir is given or QCP_LOG_DIR is set
    Safe to call more than once; handlers are only installed the first time.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    if getattr(logger, "_logutil_configured", False):
        return logger

    colorama_init()
    logger.setLevel(logging.DEBUG)

    ch = logging.StreamHandler()
    ch.setLevel((level or config.LOG_LEVEL).upper())
    ch.setFormatter(RichFormatter())
    logger.addHandler(ch)

    log_dir = log_dir or config.LOG_DIR
    if log_dir:
        _ensure_dir(log_dir)
        fh = RotatingFileHandler(os.path.join(log_dir, "qcp-browser.log"),
                                 maxBytes=config.LOG_MAX_BYTES, backupCount=config.LOG_BACKUP_COUNT,
                                 encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(JSONLFormatter())
        logger.addHandler(fh)

    logger.propagate = False   # stop at package boundary (prevents double logging via root)
    logger._logutil_configured = True  # type: ignore[attr-defined]
    return logger

def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger or a child of it (``qcp.<name>``)."""
    return logging.getLogger(_LOGGER_NAME if not name else f"{_LOGGER_NAME}.{name}")

def safe_preview(val, *, limit: int = 256) -> str:
    s = str(val)
    return s if len(s) <= limit else (s[:limit] + "…")
