# main/views.py
from __future__ import annotations

import base64
import hashlib
import hmac
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from django_ratelimit.decorators import ratelimit

from . import accounts, errors, services
from .auth import jwt_required, admin_required
from .http import json_body, json_errors

log = logging.getLogger(__name__)

AUTH_RATE = getattr(settings, "AUTH_RATE_LIMIT", "10/m")


# ---------- Auth ----------
@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@ratelimit(key="ip", rate=AUTH_RATE, block=True)
def signup(request):
    user = accounts.signup(json_body(request))
    return JsonResponse({"message": "User registered successfully.", "user": user.public_payload()}, status=201)


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@ratelimit(key="ip", rate=AUTH_RATE, block=True)
def login(request):
    return JsonResponse(accounts.login(json_body(request)))


# ---------- User self-service ----------
@json_errors
@require_http_methods(["GET"])
@jwt_required
def profile(request):
    return JsonResponse(accounts.profile(request.auth_user))


@json_errors
@require_http_methods(["GET"])
@jwt_required
def my_referrals(request):
    return JsonResponse({"referrals": accounts.my_referrals(request.auth_user)})


@csrf_exempt
@json_errors
@require_http_methods(["PUT", "POST"])
@jwt_required
def withdrawal_address(request):
    user = accounts.set_withdrawal_address(request.auth_user, json_body(request))
    return JsonResponse({
        "message": "Withdrawal wallet address updated.",
        "withdrawal_wallet_address": user.withdrawal_wallet_address,
    })


@csrf_exempt
@json_errors
@require_http_methods(["PUT", "POST"])
@jwt_required
def change_password(request):
    accounts.change_password(request.auth_user, json_body(request))
    return JsonResponse({"message": "Password updated successfully."})


@csrf_exempt
@json_errors
@require_http_methods(["PUT", "POST"])
@jwt_required
def change_withdrawal_password(request):
    accounts.change_withdrawal_password(request.auth_user, json_body(request))
    return JsonResponse({"message": "Withdrawal password updated successfully."})


# ---------- Withdraw ----------
@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@jwt_required
def withdraw(request):
    return JsonResponse(services.request_withdrawal(request.auth_user.pk, json_body(request)))


@json_errors
@require_http_methods(["GET"])
@jwt_required
def withdrawals(request):
    return JsonResponse({"withdrawals": services.withdrawal_history(request.auth_user)})


# ---------- Recharge requests (user side) ----------
@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@jwt_required
def recharge_submit(request):
    req = services.submit_recharge(request.auth_user, json_body(request), request.notifier)
    return JsonResponse({"message": "Recharge request submitted.", "request": req.as_dict()}, status=201)


@json_errors
@require_http_methods(["GET"])
@jwt_required
def recharge_rejected(request):
    return JsonResponse({"requests": services.rejected_recharges(request.auth_user)})


# ---------- Recharge transactions ----------
@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@jwt_required
def recharge_transaction_open(request):
    return JsonResponse(services.open_recharge_transaction(request.auth_user, json_body(request)), status=201)


@json_errors
@require_http_methods(["GET"])
@jwt_required
def recharge_transaction_history(request, user_id: int):
    user = request.auth_user
    if user.pk != user_id and not user.is_admin:
        raise errors.Forbidden("Access denied. You can only view your own history.")
    return JsonResponse({"transactions": services.recharge_transaction_history(user_id)})


def _signature_valid(secret: str, raw_body: bytes, sig_header: str | None) -> bool:
    if not sig_header:
        return False
    expected = base64.b64encode(hmac.new(secret.encode(), raw_body, hashlib.sha256).digest()).decode()
    return hmac.compare_digest(sig_header, expected)


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
def recharge_transaction_webhook(request):
    """
    Deposit-monitor callback. Requires X-DEP-SIGN (base64 HMAC-SHA256 of the raw body).
    Expects JSON: {"transaction_id": "...", "txid": "...", "amount": "100.00"}
    """
    secret = getattr(settings, "DEPOSIT_WEBHOOK_SECRET", "")
    if not secret:
        log.error("deposit webhook called but DEPOSIT_WEBHOOK_SECRET is not configured")
        raise errors.Forbidden("Webhook is not configured.")
    if not _signature_valid(secret, request.body, request.headers.get("X-DEP-SIGN")):
        raise errors.Forbidden("Invalid or missing signature.")

    txn, confirmed_now = services.confirm_recharge_transaction(json_body(request), request.notifier)
    return JsonResponse({"ok": True, "confirmed": confirmed_now, "status": txn.status})


# ---------- Recharge admin history (kept next to user history) ----------
@json_errors
@require_http_methods(["GET"])
@admin_required
def recharge_history(request, user_id: int):
    return JsonResponse({"requests": services.recharge_history(user_id)})
