"""Application and access logging setup"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path


LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
DEBUG_LOG_FORMAT = "%(levelname)s %(name)s %(filename)s:%(lineno)d: %(message)s"
ACCESS_LOGGER = "sitepub.access"
ACCESS_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"

_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t"})


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger on stderr; DEBUG adds file/line to each record."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEBUG_LOG_FORMAT if debug else LOG_FORMAT))
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, handlers=[handler], force=True)


def sanitize_log_field(value: str) -> str:
    """Escape newlines and tabs so a client-controlled value cannot forge log lines."""
    return (value or "").translate(_ESCAPES)


def access_logger(path: str | Path) -> logging.Logger:
    """Return a non-propagating logger appending raw lines to path.

    Repeated calls for the same path reuse the existing handler.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(f"{ACCESS_LOGGER}.{path.resolve()}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    return logger


def client_ip(headers, peer: str | None) -> str:
    """Real client address: CF-Connecting-IP, then X-Forwarded-For, then the socket peer."""
    return headers.get("cf-connecting-ip") or headers.get("x-forwarded-for") or peer or "-"


def format_access_line(
    vhost: str,
    ip: str,
    method: str,
    uri: str,
    proto: str,
    status: int,
    size: int,
    referer: str,
    user_agent: str,
    when: datetime | None = None,
    ) -> str:
    """Render one access log entry in nginx combined style, prefixed with the virtual host."""
    when = when or datetime.now(timezone.utc)
    fields = [sanitize_log_field(v) for v in (vhost, ip, method, uri, proto, referer, user_agent)]
    vhost, ip, method, uri, proto, referer, user_agent = fields
    return (
        f'{vhost} {ip} [{when.strftime(ACCESS_TIME_FORMAT)}] '
        f'"{method} {uri} {proto}" {status} {size} "{referer}" "{user_agent}"'
    )
