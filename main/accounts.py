# main/accounts.py
from __future__ import annotations

import logging

import phonenumbers
from django.conf import settings
from django.db import IntegrityError, transaction

from . import errors
from .auth import issue_token
from .models import CustomUser, Role
from .tron import is_trc20_address

log = logging.getLogger(__name__)

MIN_PASSWORD_LEN = 6


def _s(val) -> str:
    if val is None:
        return ""
    return str(val).strip()


# ---------- Phone helpers ----------
def normalize_phone(raw: str) -> str:
    """E.164 form of a user-typed number; the default region applies without '+'."""
    raw = _s(raw)
    if not raw:
        raise errors.ValidationError("Phone number is required.")
    region = getattr(settings, "PHONENUMBER_DEFAULT_REGION", "US")
    try:
        parsed = phonenumbers.parse(raw, None if raw.startswith("+") else region)
    except phonenumbers.NumberParseException:
        raise errors.ValidationError("Invalid phone number format.")
    if not phonenumbers.is_possible_number(parsed):
        raise errors.ValidationError("Invalid phone number format.")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def _check_new_password(raw: str, label: str = "New password") -> None:
    if len(raw) < MIN_PASSWORD_LEN:
        raise errors.ValidationError(f"{label} must be at least {MIN_PASSWORD_LEN} characters long.")


# ---------- Signup / login ----------
def signup(data: dict) -> CustomUser:
    username = _s(data.get("username"))
    password = _s(data.get("password"))
    confirm = _s(data.get("confirm_password"))
    withdrawal_password = _s(data.get("withdrawal_password"))
    referral_code = _s(data.get("referralCode"))

    if not username or not password or not withdrawal_password:
        raise errors.ValidationError("Username, phone, password and withdrawal password are required.")
    if password != confirm:
        raise errors.ValidationError("Passwords do not match.")
    _check_new_password(password, "Password")
    if not referral_code:
        raise errors.ValidationError("Referral code is required.")

    phone = normalize_phone(data.get("phone"))

    referrer = CustomUser.objects.filter(invitation_code=referral_code).first()
    if referrer is None:
        raise errors.ValidationError("Invalid referral code.")
    if CustomUser.objects.filter(phone=phone).exists():
        raise errors.ValidationError("Phone number already registered.")
    if CustomUser.objects.filter(username=username).exists():
        raise errors.ValidationError("Username already taken.")

    try:
        with transaction.atomic():
            user = CustomUser.objects.create_user(
                username,
                phone,
                password,
                referrer=referrer,
                role=Role.USER,
            )
            user.set_withdrawal_password(withdrawal_password)
            user.save(update_fields=["withdrawal_password"])
    except IntegrityError:
        # lost a race against a concurrent signup with the same phone/username
        raise errors.ValidationError("Phone number already registered.")

    log.info("signup u=%s referrer=%s", user.pk, referrer.pk)
    return user


def login(data: dict) -> dict:
    """
    Users log in with phone, admins with username. Each portal refuses the other role.
    """
    password = _s(data.get("password"))
    username = _s(data.get("username"))
    phone = _s(data.get("phone"))
    if not password or not (username or phone):
        raise errors.ValidationError("Credentials are required.")

    if username:
        user = CustomUser.objects.filter(username=username).first()
        expected_role = Role.ADMIN
    else:
        try:
            phone = normalize_phone(phone)
        except errors.ValidationError:
            raise errors.ValidationError("Invalid credentials.")
        user = CustomUser.objects.filter(phone=phone).first()
        expected_role = Role.USER

    if user is None or not user.is_active or not user.check_password(password):
        raise errors.ValidationError("Invalid credentials.")
    if user.role != expected_role:
        if expected_role == Role.ADMIN:
            raise errors.Forbidden("Access denied. This login is for administrators only.")
        raise errors.Forbidden("Administrators must log in with their username.")

    return {"token": issue_token(user), "user": user.public_payload()}


# ---------- Self-service ----------
def profile(user: CustomUser) -> dict:
    return {
        **user.public_payload(),
        "invitation_code": user.invitation_code,
        "wallet_balance": str(user.wallet_balance),
        "daily_orders": user.daily_orders,
        "completed_orders": user.completed_orders,
        "uncompleted_orders": user.uncompleted_orders,
        "walletAddress": user.wallet_address,
        "withdrawal_wallet_address": user.withdrawal_wallet_address or None,
        "referrer_id": user.referrer_id,
    }


def my_referrals(user: CustomUser) -> list[dict]:
    return [
        {"id": u.id, "username": u.username, "phone": u.phone, "created_at": u.date_joined.isoformat()}
        for u in user.referrals.order_by("-date_joined")
    ]


def set_withdrawal_address(user: CustomUser, data: dict) -> CustomUser:
    address = _s(data.get("withdrawal_wallet_address") or data.get("address"))
    withdrawal_password = _s(data.get("withdrawal_password"))
    if not address or not withdrawal_password:
        raise errors.ValidationError("Wallet address and withdrawal password are required.")
    if not is_trc20_address(address):
        raise errors.ValidationError("Invalid TRC20 wallet address.")
    if not user.check_withdrawal_password(withdrawal_password):
        raise errors.InvalidCredential("Incorrect withdrawal password.")
    user.withdrawal_wallet_address = address
    user.save(update_fields=["withdrawal_wallet_address"])
    return user


def change_password(user: CustomUser, data: dict) -> None:
    current = _s(data.get("current_password"))
    new = _s(data.get("new_password"))
    if not current or not new:
        raise errors.ValidationError("Current and new password are required.")
    if not user.check_password(current):
        raise errors.InvalidCredential("Current password is incorrect.")
    _check_new_password(new)
    user.set_password(new)
    user.save(update_fields=["password"])


def change_withdrawal_password(user: CustomUser, data: dict) -> None:
    current = _s(data.get("current_withdrawal_password"))
    new = _s(data.get("new_withdrawal_password"))
    if not current or not new:
        raise errors.ValidationError("Current and new withdrawal password are required.")
    if not user.check_withdrawal_password(current):
        raise errors.InvalidCredential("Current withdrawal password is incorrect.")
    _check_new_password(new, "New withdrawal password")
    user.set_withdrawal_password(new)
    user.save(update_fields=["withdrawal_password"])
