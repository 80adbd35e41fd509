# main/ledger.py
"""
Balance mutation under a row lock.

Every write to CustomUser.wallet_balance goes through this module:

    run_locked(user_id, fn)   -> opens one transaction, locks the user row
                                 (SELECT ... FOR UPDATE), calls fn(user) and commits.
    apply_credit / apply_debit -> mutate an already-locked user and append a LedgerEntry.
    credit / debit            -> run_locked wrappers for one-shot adjustments.

Any exception raised inside fn rolls back the whole transaction, so a debit and the
record that justifies it (withdrawal, lucky order, ...) land together or not at all.
Debits on the same user serialize on the lock; different users never contend.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, TypeVar

from django.db import DatabaseError, transaction
from django.utils import timezone

from . import errors
from .currency import q2
from .models import CustomUser, LedgerEntry

log = logging.getLogger(__name__)

T = TypeVar("T")


def lock_user(user_id) -> CustomUser:
    """Must be called inside transaction.atomic()."""
    try:
        return CustomUser.objects.select_for_update().get(pk=user_id)
    except (CustomUser.DoesNotExist, ValueError, TypeError):
        raise errors.UserNotFound("User not found.")


def run_locked(user_id, fn: Callable[[CustomUser], T]) -> T:
    try:
        with transaction.atomic():
            user = lock_user(user_id)
            return fn(user)
    except DatabaseError as exc:
        log.exception("ledger transaction failed for user %s", user_id)
        raise errors.PersistenceError("Could not complete the balance update.") from exc


def _positive(amount) -> Decimal:
    amount = q2(amount)
    if amount <= 0:
        raise errors.ValidationError("Amount must be greater than zero.")
    return amount


def _write(user: CustomUser, delta: Decimal, *, kind: str, memo: str) -> LedgerEntry:
    user.wallet_balance = q2(user.wallet_balance + delta)
    user.last_activity_at = timezone.now()
    user.save(update_fields=["wallet_balance", "last_activity_at"])
    return LedgerEntry.objects.create(
        user=user, kind=kind, amount=delta, balance_after=user.wallet_balance, memo=memo[:255]
    )


def apply_credit(user: CustomUser, amount, *, kind: str, memo: str = "") -> LedgerEntry:
    amount = _positive(amount)
    entry = _write(user, amount, kind=kind, memo=memo)
    log.info("credit u=%s +%s kind=%s balance=%s", user.pk, amount, kind, user.wallet_balance)
    return entry


def apply_debit(user: CustomUser, amount, *, kind: str, memo: str = "") -> LedgerEntry:
    amount = _positive(amount)
    if amount > user.wallet_balance:
        raise errors.InsufficientFunds("Insufficient balance.")
    entry = _write(user, -amount, kind=kind, memo=memo)
    log.info("debit u=%s -%s kind=%s balance=%s", user.pk, amount, kind, user.wallet_balance)
    return entry


def set_balance(user: CustomUser, target, *, memo: str = "") -> LedgerEntry | None:
    """Admin overwrite, recorded as one signed ADJUST entry. No-op when unchanged."""
    target = q2(target)
    if target < 0:
        raise errors.ValidationError("Invalid wallet amount provided.")
    delta = target - user.wallet_balance
    if delta == 0:
        return None
    entry = _write(user, delta, kind=LedgerEntry.Kind.ADJUST, memo=memo)
    log.info("adjust u=%s %+.2f balance=%s", user.pk, delta, user.wallet_balance)
    return entry


def credit(user_id, amount, *, kind: str, memo: str = "") -> LedgerEntry:
    return run_locked(user_id, lambda user: apply_credit(user, amount, kind=kind, memo=memo))


def debit(user_id, amount, *, kind: str, memo: str = "") -> LedgerEntry:
    return run_locked(user_id, lambda user: apply_debit(user, amount, kind=kind, memo=memo))
