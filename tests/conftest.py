"""
Pytest configuration and fixtures for the TaskHub API tests
"""
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import connections
from django.test import Client

from main import errors
from main.auth import issue_token
from main.models import CustomUser, Product, Role
from support_app.notifications import Notifier

PASSWORD = "secret123"
WITHDRAWAL_PASSWORD = "wdpass123"
TRC20_ADDRESS = "T" + "A" * 33


class RecordingNotifier(Notifier):
    """Keeps every emitted event so tests can assert on them."""

    def __init__(self):
        self.events = []

    def emit(self, room, event, payload):
        self.events.append((room, event, payload))

    def names(self, room=None):
        return [e for r, e, _ in self.events if room is None or r == room]


@pytest.fixture
def notifier(monkeypatch):
    rec = RecordingNotifier()
    monkeypatch.setattr("support_app.middleware.build_notifier", lambda *a, **kw: rec)
    return rec


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(balance="0.00", *, role=Role.USER, referrer=None, daily_orders=0, **extra):
        counter["n"] += 1
        n = counter["n"]
        user = CustomUser.objects.create_user(
            extra.pop("username", f"user{n}"),
            extra.pop("phone", f"+1415555{n:04d}"),
            PASSWORD,
            role=role,
            referrer=referrer,
            daily_orders=daily_orders,
            uncompleted_orders=daily_orders,
            **extra,
        )
        user.set_withdrawal_password(WITHDRAWAL_PASSWORD)
        user.wallet_balance = Decimal(balance)
        user.save()
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("100.00", username="alice")


@pytest.fixture
def admin_user(make_user):
    return make_user(role=Role.ADMIN, username="root", is_staff=True)


@pytest.fixture
def products(db):
    return [
        Product.objects.create(name=f"Product {i}", price=Decimal("10.00") * i, image_url=f"/media/p{i}.jpg")
        for i in range(1, 4)
    ]


class ApiClient:
    """Thin wrapper over django.test.Client that speaks JSON and carries a bearer token."""

    def __init__(self):
        self.client = Client()

    def _headers(self, as_user):
        if as_user is None:
            return {}
        return {"Authorization": f"Bearer {issue_token(as_user)}"}

    def get(self, path, *, as_user=None, **params):
        return self.client.get(path, params, headers=self._headers(as_user))

    def _send(self, method, path, data, as_user, headers=None):
        body = data if isinstance(data, (bytes, str)) else json.dumps(data or {})
        return getattr(self.client, method)(
            path, body, content_type="application/json",
            headers={**self._headers(as_user), **(headers or {})},
        )

    def post(self, path, data=None, *, as_user=None, headers=None):
        return self._send("post", path, data, as_user, headers)

    def put(self, path, data=None, *, as_user=None):
        return self._send("put", path, data, as_user)

    def delete(self, path, *, as_user=None):
        return self.client.delete(path, headers=self._headers(as_user))


@pytest.fixture
def api(notifier):
    return ApiClient()


def race(fn, workers=2):
    """
    Run fn in `workers` threads released together and return the sorted outcome names
    ("ok" or the ServiceError class name). Needs django_db(transaction=True).
    """
    barrier = threading.Barrier(workers)

    def _run():
        barrier.wait()
        try:
            fn()
            return "ok"
        except errors.ServiceError as e:
            return type(e).__name__
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_run) for _ in range(workers)]
        return sorted(f.result() for f in futures)
