# main/services.py
"""
Financial flows and admin operations.

Every balance change goes through main.ledger so the row lock, the balance write and
the record that explains it share one transaction. Real-time events are emitted only
after that transaction has committed.
"""
from __future__ import annotations

import base64
import logging
from io import BytesIO

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import ProtectedError
from django.utils import timezone

from . import errors, ledger, tron
from .accounts import normalize_phone
from .currency import parse_amount
from .models import (
    CustomUser, LedgerEntry, Role,
    InjectionPlan,
    RechargeRequest, RechargeStatus, RechargeTransaction,
    Withdrawal, WithdrawalStatus, Network,
)

log = logging.getLogger(__name__)

def _s(val) -> str:
    if val is None:
        return ""
    return str(val).strip()

def _positive_amount(value, message="Invalid amount provided."):
    amount = parse_amount(value)
    if amount is None or amount <= 0:
        raise errors.ValidationError(message)
    return amount

# =========================
# Withdrawals
# =========================
def request_withdrawal(user_id, data: dict) -> dict:
    """
    Debit the balance and record a withdrawal in one locked transaction.

    Settlement is simulated: the row is written as pending and moved to completed
    with a generated transaction id before commit.
    """
    amount = _positive_amount(data.get("amount"), "Withdrawal amount must be greater than zero.")
    withdrawal_password = _s(data.get("withdrawal_password"))
    currency = _s(data.get("currency")).upper() or settings.WITHDRAWAL_DEFAULT_CURRENCY
    network = _s(data.get("network")).upper() or settings.WITHDRAWAL_DEFAULT_NETWORK
    to_address = _s(data.get("to_address"))

    if not withdrawal_password:
        raise errors.ValidationError("Withdrawal password is required.")
    if network not in Network.values:
        raise errors.ValidationError(f"Unsupported network: {network}.")
    if to_address and not tron.is_trc20_address(to_address):
        raise errors.ValidationError("Invalid TRC20 wallet address.")

    def _withdraw(user: CustomUser) -> Withdrawal:
        if user.uncompleted_orders > 0:
            raise errors.ValidationError("You must complete all daily tasks before withdrawing funds.")
        address = to_address or user.withdrawal_wallet_address
        if not address:
            raise errors.ValidationError("Please set your withdrawal wallet address first.")
        if not tron.is_trc20_address(address):
            raise errors.ValidationError("Invalid TRC20 wallet address.")
        if not user.check_withdrawal_password(withdrawal_password):
            raise errors.InvalidCredential("Incorrect withdrawal password.")

        ledger.apply_debit(user, amount, kind=LedgerEntry.Kind.WITHDRAW, memo=f"withdraw to {address}")
        wd = Withdrawal.objects.create(
            user=user,
            amount=amount,
            currency=currency,
            network=network,
            to_address=address,
            status=WithdrawalStatus.PENDING,
        )
        _settle_withdrawal(wd)
        return wd

    wd = ledger.run_locked(user_id, _withdraw)
    log.info("withdrawal #%s u=%s %s %s -> %s", wd.pk, user_id, wd.amount, wd.currency, wd.status)
    return {
        "message": "Withdrawal processed successfully.",
        "withdrawalId": wd.pk,
        "amount": str(wd.amount),
        "to_address": wd.to_address,
        "currency": wd.currency,
        "network": wd.network,
        "status": wd.status,
    }

def _settle_withdrawal(wd: Withdrawal) -> None:
    # TODO: replace with an async settlement callback once a payout provider exists
    wd.status = WithdrawalStatus.COMPLETED
    wd.transaction_id = tron.simulated_txid()
    wd.save(update_fields=["status", "transaction_id", "updated_at"])

def withdrawal_history(user: CustomUser) -> list[dict]:
    return [w.as_dict() for w in user.withdrawals.all()]

# =========================
# Recharge requests
# =========================
def submit_recharge(user: CustomUser, data: dict, notifier) -> RechargeRequest:
    amount = _positive_amount(data.get("amount"))
    currency = _s(data.get("currency")).upper() or "USDT"
    plan = None
    plan_id = data.get("injection_plan_id")
    if plan_id not in (None, ""):
        plan = InjectionPlan.objects.filter(pk=plan_id, user=user).first()
        if plan is None:
            raise errors.NotFoundError("Injection plan not found.")

    req = RechargeRequest.objects.create(
        user=user,
        amount=amount,
        currency=currency,
        receipt_image=_s(data.get("receipt_image") or data.get("receipt_image_url"))[:500],
        contact_info=_s(data.get("contact_info"))[:255],
        injection_plan=plan,
    )
    log.info("recharge request #%s u=%s %s %s", req.pk, user.pk, amount, currency)

    notifier.to_admins("newRechargeRequest", {
        "id": req.pk,
        "userId": user.pk,
        "username": user.username,
        "phone": user.phone,
        "amount": str(req.amount),
        "currency": req.currency,
        "status": req.status,
        "createdAt": req.created_at.isoformat(),
    })
    return req

def _decide_recharge(request_id, *, approve: bool, admin_notes: str) -> RechargeRequest:
    """
    Lock the request, then the owner's row, and apply the transition in one transaction.
    A request that is no longer pending is refused, so two admins cannot both approve.
    """
    try:
        with transaction.atomic():
            req = RechargeRequest.objects.select_for_update().filter(pk=request_id).first()
            if req is None:
                raise errors.NotFoundError("Recharge request not found.")
            if req.status != RechargeStatus.PENDING:
                raise errors.InvalidState(f"Recharge request is already {req.status}.")

            if approve:
                user = ledger.lock_user(req.user_id)
                ledger.apply_credit(
                    user, req.amount, kind=LedgerEntry.Kind.RECHARGE, memo=f"recharge request #{req.pk}"
                )
                req.status = RechargeStatus.APPROVED
            else:
                req.status = RechargeStatus.REJECTED

            req.admin_notes = admin_notes
            req.decided_at = timezone.now()
            req.save(update_fields=["status", "admin_notes", "decided_at", "updated_at"])
            return req
    except DatabaseError as exc:
        log.exception("recharge decision failed for request %s", request_id)
        raise errors.PersistenceError("Could not update the recharge request.") from exc

def approve_recharge(request_id, admin_notes: str, notifier) -> RechargeRequest:
    req = _decide_recharge(request_id, approve=True, admin_notes=_s(admin_notes))
    log.info("recharge #%s approved, u=%s credited %s", req.pk, req.user_id, req.amount)
    notifier.to_user(req.user_id, "rechargeApproved", {
        "requestId": req.pk,
        "amount": str(req.amount),
        "currency": req.currency,
        "message": f"Your recharge of {req.amount} {req.currency} has been approved.",
    })
    return req

def reject_recharge(request_id, admin_notes: str, notifier) -> RechargeRequest:
    req = _decide_recharge(request_id, approve=False, admin_notes=_s(admin_notes))
    log.info("recharge #%s rejected, u=%s", req.pk, req.user_id)
    notifier.to_user(req.user_id, "rechargeRejected", {
        "requestId": req.pk,
        "amount": str(req.amount),
        "currency": req.currency,
        "admin_notes": req.admin_notes,
        "message": f"Your recharge of {req.amount} {req.currency} has been rejected.",
    })
    return req

def pending_recharges() -> list[dict]:
    qs = (
        RechargeRequest.objects
        .select_related("user")
        .filter(status=RechargeStatus.PENDING)
        .order_by("created_at")
    )
    return [{**r.as_dict(), "username": r.user.username, "phone": r.user.phone} for r in qs]

def recharge_history(user_id) -> list[dict]:
    if not CustomUser.objects.filter(pk=user_id).exists():
        raise errors.UserNotFound("User not found.")
    return [r.as_dict() for r in RechargeRequest.objects.filter(user_id=user_id)]

def rejected_recharges(user: CustomUser) -> list[dict]:
    return [r.as_dict() for r in user.recharge_requests.filter(status=RechargeStatus.REJECTED)]

# =========================
# Recharge transactions (watched deposits to generated addresses)
# =========================
def _qr_data_uri(payload: str) -> str | None:
    try:
        import qrcode
        img = qrcode.make(payload)
        buf = BytesIO()
        img.save(buf, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
    except Exception:
        log.warning("could not render deposit QR code", exc_info=True)
        return None

def open_recharge_transaction(user: CustomUser, data: dict) -> dict:
    amount = _positive_amount(data.get("amount"))
    currency = _s(data.get("currency")).upper() or "USDT"
    if not user.wallet_address:
        raise errors.ConflictError("No deposit address assigned yet. Please contact support.")

    txn = RechargeTransaction.objects.create(
        user=user, amount=amount, currency=currency, address=user.wallet_address
    )
    log.info("recharge txn %s opened u=%s %s %s", txn.transaction_id, user.pk, amount, currency)
    return {**txn.as_dict(), "qr": _qr_data_uri(txn.address)}

def confirm_recharge_transaction(data: dict, notifier) -> tuple[RechargeTransaction, bool]:
    """
    Idempotently confirm a watched deposit and credit its owner.
    Returns (txn, confirmed_now); repeats return confirmed_now=False.
    """
    transaction_id = _s(data.get("transaction_id"))
    if not transaction_id:
        raise errors.ValidationError("Missing 'transaction_id'.")
    reported = data.get("amount")

    try:
        with transaction.atomic():
            txn = RechargeTransaction.objects.select_for_update().filter(transaction_id=transaction_id).first()
            if txn is None:
                raise errors.NotFoundError("Recharge transaction not found.")
            if txn.status != RechargeTransaction.Status.PENDING:
                return txn, False
            if reported not in (None, "") and parse_amount(reported) != txn.amount:
                raise errors.ValidationError("Amount does not match the expected deposit.")

            user = ledger.lock_user(txn.user_id)
            ledger.apply_credit(
                user, txn.amount, kind=LedgerEntry.Kind.DEPOSIT, memo=f"deposit {txn.transaction_id}"
            )
            txn.status = RechargeTransaction.Status.CONFIRMED
            txn.txid = _s(data.get("txid"))[:128]
            txn.confirmed_at = timezone.now()
            txn.save(update_fields=["status", "txid", "confirmed_at", "updated_at"])
    except DatabaseError as exc:
        log.exception("deposit confirmation failed for %s", transaction_id)
        raise errors.PersistenceError("Could not confirm the deposit.") from exc

    log.info("recharge txn %s confirmed, u=%s credited %s", txn.transaction_id, txn.user_id, txn.amount)
    notifier.to_user(txn.user_id, "rechargeApproved", {
        "transactionId": txn.transaction_id,
        "amount": str(txn.amount),
        "currency": txn.currency,
        "message": f"Your deposit of {txn.amount} {txn.currency} has been confirmed.",
    })
    return txn, True

def recharge_transaction_history(user_id) -> list[dict]:
    return [t.as_dict() for t in RechargeTransaction.objects.filter(user_id=user_id)]

# =========================
# Admin: quotas, balances, profiles
# =========================
def set_daily_orders(user_id, daily_orders: int) -> CustomUser:
    """Resets the window: daily and uncompleted both become n, completed is untouched."""
    if daily_orders < 0:
        raise errors.ValidationError("Invalid daily orders count.")
    updated = CustomUser.objects.filter(pk=user_id).update(
        daily_orders=daily_orders, uncompleted_orders=daily_orders
    )
    if not updated:
        raise errors.UserNotFound("User not found.")
    log.info("daily orders u=%s set to %s", user_id, daily_orders)
    return CustomUser.objects.get(pk=user_id)

def inject_balance(user_id, amount, *, admin: CustomUser | None = None) -> CustomUser:
    amount = _positive_amount(amount)
    memo = f"injected by admin {admin.pk}" if admin else "admin injection"

    def _inject(user):
        ledger.apply_credit(user, amount, kind=LedgerEntry.Kind.INJECT, memo=memo)
        return user

    return ledger.run_locked(user_id, _inject)

def list_users(params) -> dict:
    qs = CustomUser.objects.filter(role=Role.USER).order_by("-date_joined")

    filters = {
        "username": "username__icontains",
        "phone": "phone__icontains",
        "code": "invitation_code__icontains",
        "wallet": "wallet_address__icontains",
    }
    for param, lookup in filters.items():
        value = _s(params.get(param))
        if value:
            qs = qs.filter(**{lookup: value})

    try:
        limit = max(1, min(int(params.get("limit") or 10), 100))
        page = max(1, int(params.get("page") or 1))
    except (TypeError, ValueError):
        raise errors.ValidationError("Invalid pagination parameters.")

    total = qs.count()
    offset = (page - 1) * limit
    users = [
        {
            **u.public_payload(),
            "invitation_code": u.invitation_code,
            "referrer_id": u.referrer_id,
            "wallet_balance": str(u.wallet_balance),
            "daily_orders": u.daily_orders,
            "completed_orders": u.completed_orders,
            "uncompleted_orders": u.uncompleted_orders,
            "walletAddress": u.wallet_address,
            "withdrawal_wallet_address": u.withdrawal_wallet_address or None,
            "created_at": u.date_joined.isoformat(),
        }
        for u in qs[offset:offset + limit]
    ]
    return {"users": users, "totalCount": total}

def update_user_profile(user_id, data: dict) -> CustomUser:
    fields = {}
    if _s(data.get("username")):
        fields["username"] = _s(data["username"])
    if _s(data.get("phone")):
        fields["phone"] = normalize_phone(data["phone"])
    if "walletAddress" in data:
        fields["withdrawal_wallet_address"] = _s(data.get("walletAddress"))
        if fields["withdrawal_wallet_address"] and not tron.is_trc20_address(fields["withdrawal_wallet_address"]):
            raise errors.ValidationError("Invalid TRC20 wallet address.")

    new_password = _s(data.get("new_password"))
    if new_password and len(new_password) < 6:
        raise errors.ValidationError("New password must be at least 6 characters long.")
    new_wd_password = _s(data.get("new_withdrawal_password"))
    if new_wd_password and len(new_wd_password) < 6:
        raise errors.ValidationError("New withdrawal password must be at least 6 characters long.")

    wallet_amount = None
    if data.get("walletAmount") not in (None, ""):
        wallet_amount = parse_amount(data.get("walletAmount"))
        if wallet_amount is None or wallet_amount < 0:
            raise errors.ValidationError("Invalid wallet amount provided.")

    if not fields and not new_password and not new_wd_password and wallet_amount is None:
        raise errors.ValidationError("No valid fields provided for update.")

    def _update(user: CustomUser) -> CustomUser:
        if "username" in fields and CustomUser.objects.filter(username=fields["username"]).exclude(pk=user.pk).exists():
            raise errors.ValidationError("Username already taken.")
        if "phone" in fields and CustomUser.objects.filter(phone=fields["phone"]).exclude(pk=user.pk).exists():
            raise errors.ValidationError("Phone number already registered.")
        for name, value in fields.items():
            setattr(user, name, value)
        if new_password:
            user.set_password(new_password)
        if new_wd_password:
            user.set_withdrawal_password(new_wd_password)
        user.save()
        if wallet_amount is not None:
            ledger.set_balance(user, wallet_amount, memo="admin profile update")
        return user

    user = ledger.run_locked(user_id, _update)
    log.info("profile u=%s updated fields=%s", user.pk, sorted(fields) + (["password"] if new_password else []))
    return user

def assign_wallet(user_id, *, admin: CustomUser, notifier) -> CustomUser:
    """Generate the user's (simulated) TRON deposit account once and tell them in chat."""
    from support_app.models import ChatMessage, SenderRole, DEPOSIT_ADDRESS_PREFIX

    account = tron.create_account()
    with transaction.atomic():
        user = ledger.lock_user(user_id)
        if user.wallet_address:
            raise errors.ConflictError("Wallet address already assigned.")
        user.wallet_address = account["address"]
        user.wallet_private_key = account["private_key"]
        user.save(update_fields=["wallet_address", "wallet_private_key"])
        msg = ChatMessage.objects.create(
            user=user,
            sender=admin,
            sender_role=SenderRole.ADMIN,
            message=f"{DEPOSIT_ADDRESS_PREFIX}: {user.wallet_address}",
            is_read_by_admin=True,
        )

    log.info("wallet assigned u=%s", user.pk)
    notifier.to_user(user.pk, "newMessage", msg.as_dict())
    return user

def delete_user(user_id) -> None:
    user = CustomUser.objects.filter(pk=user_id).first()
    if user is None:
        raise errors.UserNotFound("User not found.")
    try:
        with transaction.atomic():
            user.delete()
    except ProtectedError:
        raise errors.ConflictError(
            "Cannot delete user: related records exist (withdrawals or recharges)."
        )
    log.info("user %s deleted", user_id)

# =========================
# Injection plans
# =========================
def _plan_values(data: dict, *, partial: bool = False) -> dict:
    values = {}
    if not partial or "injection_order" in data:
        try:
            order = int(data.get("injection_order"))
        except (TypeError, ValueError):
            order = 0
        if order <= 0:
            raise errors.ValidationError("injection_order must be a positive integer.")
        values["injection_order"] = order
    for name in ("commission_rate", "injections_amount"):
        if not partial or name in data:
            amount = parse_amount(data.get(name))
            if amount is None or amount <= 0:
                raise errors.ValidationError(f"{name} must be a positive number.")
            values[name] = amount
    if not values:
        raise errors.ValidationError("No valid fields provided for update.")
    return values

def create_injection_plan(user_id, data: dict) -> InjectionPlan:
    values = _plan_values(data)
    if not CustomUser.objects.filter(pk=user_id).exists():
        raise errors.UserNotFound("User not found.")
    plan = InjectionPlan.objects.create(user_id=user_id, **values)
    log.info("injection plan #%s for u=%s at order %s", plan.pk, user_id, plan.injection_order)
    return plan

def list_injection_plans(user_id) -> list[dict]:
    return [p.as_dict() for p in InjectionPlan.objects.filter(user_id=user_id)]

def update_injection_plan(plan_id, data: dict) -> InjectionPlan:
    values = _plan_values(data, partial=True)
    with transaction.atomic():
        plan = InjectionPlan.objects.select_for_update().filter(pk=plan_id).first()
        if plan is None:
            raise errors.NotFoundError("Injection plan not found.")
        if plan.is_completed:
            raise errors.InvalidState("A completed injection plan cannot be changed.")
        for name, value in values.items():
            setattr(plan, name, value)
        plan.save()
    return plan

def delete_injection_plan(plan_id) -> None:
    deleted, _ = InjectionPlan.objects.filter(pk=plan_id).delete()
    if not deleted:
        raise errors.NotFoundError("Injection plan not found.")
