# support_app/notifications.py
"""
Real-time notifiers.

A notifier is built once per request handler (see support_app.middleware) and handed
to services explicitly; nothing in this module holds a process-wide instance.

Rooms:
    "admins"       every connected admin
    "user-<id>"    one user's sessions
"""
from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings
from django.core.cache import cache
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.module_loading import import_string

log = logging.getLogger(__name__)

ADMIN_ROOM = "admins"


def user_room(user_id) -> str:
    return f"user-{user_id}"


class Notifier:
    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError

    def to_user(self, user_id, event: str, payload: dict[str, Any]) -> None:
        self.emit(user_room(user_id), event, payload)

    def to_admins(self, event: str, payload: dict[str, Any]) -> None:
        self.emit(ADMIN_ROOM, event, payload)


class LogNotifier(Notifier):
    """Default backend: no transport, events only reach the log."""

    def emit(self, room, event, payload):
        log.info("realtime %s -> %s %s", event, room, payload)


class RelayNotifier(Notifier):
    """
    Pushes events to an external socket relay over HTTP:
        POST <url>  {"room": ..., "event": ..., "payload": {...}}
    Delivery is best effort; a failed push is logged and never raised.
    """

    def __init__(self, url: str, token: str = "", timeout: float = 3.0):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def emit(self, room, event, payload):
        body = DjangoJSONEncoder().encode({"room": room, "event": event, "payload": payload})
        try:
            r = self.session.post(
                self.url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            if not r.ok:
                log.warning("relay refused %s -> %s: status %s", event, room, r.status_code)
        except requests.RequestException as e:
            log.warning("relay push failed %s -> %s: %s", event, room, e)


def send_telegram(text: str) -> bool:
    token = getattr(settings, "TELEGRAM_BOT_TOKEN", "")
    chat_id = getattr(settings, "TELEGRAM_CHAT_ID", "")
    if not token or not chat_id:
        return False
    try:
        r = requests.post(
            f"https://api.telegram.org/bot{token}/sendMessage",
            json={"chat_id": chat_id, "text": text, "disable_web_page_preview": True},
            timeout=8,
        )
        return bool(r.ok)
    except requests.RequestException as e:
        log.warning("telegram alert failed: %s", e)
        return False


class TelegramAlertNotifier(Notifier):
    """
    Wraps another notifier and mirrors selected admin-room events to Telegram.
    Duplicate alerts for the same (event, id) are suppressed for ADMIN_ALERT_DEDUP_TTL seconds.
    """

    def __init__(self, inner: dict | Notifier | None = None, events=("newRechargeRequest",)):
        if isinstance(inner, dict):
            inner = build_notifier(inner)
        self.inner = inner or LogNotifier()
        self.events = set(events)

    def emit(self, room, event, payload):
        self.inner.emit(room, event, payload)
        if room != ADMIN_ROOM or event not in self.events:
            return

        dedup_key = f"realtime:alert:{event}:{payload.get('id')}"
        if cache.get(dedup_key):
            return
        cache.set(dedup_key, "1", int(getattr(settings, "ADMIN_ALERT_DEDUP_TTL", 300)))

        site_name = getattr(settings, "SITE_NAME", "TaskHub")
        lines = [f"{site_name}: {event}"]
        for key in ("id", "username", "phone", "amount", "currency"):
            if payload.get(key) is not None:
                lines.append(f"{key}: {payload[key]}")
        send_telegram("\n".join(lines))


def build_notifier(config: dict | None = None) -> Notifier:
    """Instantiate the backend named by settings.REALTIME_NOTIFIER (or the given config)."""
    config = config or getattr(settings, "REALTIME_NOTIFIER", None) or {}
    backend = config.get("BACKEND", "support_app.notifications.LogNotifier")
    options = config.get("OPTIONS", {}) or {}
    return import_string(backend)(**options)
