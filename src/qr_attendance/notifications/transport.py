"""Outbound guardian message transports."""
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Protocol

from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)


class MessageTransport(Protocol):
    def send(self, destination: str, body: str) -> bool:
        """Deliver one message. False or TransportError both mean not delivered."""

        raise NotImplementedError


class LogOnlyTransport:
    """Development transport: logs the message and reports success."""

    def send(self, destination: str, body: str) -> bool:
        logger.info(f"[whatsapp:dry-run] to={destination} body={body!r}")
        return True


class WebhookTransport:
    """POSTs `{"to": ..., "body": ...}` as JSON to a WhatsApp gateway."""

    def __init__(self, url: str, *, timeout: float = 10.0):
        self._url = url
        self._timeout = float(timeout)

    def send(self, destination: str, body: str) -> bool:
        payload = json.dumps({"to": destination, "body": body}).encode("utf-8")
        req = urllib.request.Request(
            self._url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                ok = 200 <= resp.status < 300
        except urllib.error.HTTPError as e:
            logger.warning(f"WhatsApp gateway rejected message to {destination}: HTTP {e.code}")
            return False
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise TransportError(f"WhatsApp gateway unreachable: {e}") from e

        if not ok:
            logger.warning(f"WhatsApp gateway returned non-2xx for {destination}")
        return ok


def build_transport(*, webhook_url: str, timeout: float) -> MessageTransport:
    if webhook_url:
        return WebhookTransport(webhook_url, timeout=timeout)
    return LogOnlyTransport()
