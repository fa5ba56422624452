# triviakit/netinfo.py
from __future__ import annotations

import logging
import socket
from typing import Optional

from triviakit.settings import Settings

logger = logging.getLogger(__name__)


def local_ip(preferred: Optional[str] = None) -> str:
    """LAN address other devices can reach this server on."""
    if preferred:
        return preferred
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect sends nothing; it only picks the outbound interface
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        try:
            return socket.gethostbyname(socket.gethostname())
        except OSError:
            logger.warning("Could not discover a LAN address, falling back to localhost")
            return "127.0.0.1"
    finally:
        sock.close()


def media_base_url(settings: Settings) -> str:
    if settings.MEDIA_BASE_URL:
        base = settings.MEDIA_BASE_URL
        return base if base.endswith("/") else base + "/"
    return f"http://{local_ip(settings.NET_INTERFACE_IP or None)}:{settings.PORT}/media/"
