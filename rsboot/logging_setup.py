from __future__ import annotations
import logging, json, sys
from .utils.time import ms_to_utc_iso

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": ms_to_utc_iso(int(record.created * 1000)),
            "lvl": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = f"{ms_to_utc_iso(int(record.created * 1000))} {record.levelname} {record.getMessage()}"
        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{k}={v}" for k, v in extra.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


FORMATTERS = {"json": JsonFormatter, "text": TextFormatter}


def setup_logging(level: int = logging.INFO, fmt: str = "json") -> logging.Logger:
    root = logging.getLogger("rsboot")
    root.handlers.clear()
    root.setLevel(level)
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(FORMATTERS[fmt]())
    root.addHandler(h)
    return root
