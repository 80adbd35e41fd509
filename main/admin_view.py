# main/admin_view.py
from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import services
from .auth import admin_required
from .http import int_param, json_body, json_errors


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------

@json_errors
@require_http_methods(["GET"])
@admin_required
def users(request):
    """Filters: username, phone, code, wallet. Pagination: limit (10), page (1)."""
    return JsonResponse(services.list_users(request.GET))


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@admin_required
def user_inject(request, user_id: int):
    data = json_body(request)
    user = services.inject_balance(user_id, data.get("amount"), admin=request.auth_user)
    return JsonResponse({
        "message": f"Successfully injected {data.get('amount')} to user {user.username}'s wallet. "
                   f"New balance: {user.wallet_balance}",
        "wallet_balance": str(user.wallet_balance),
    })


@csrf_exempt
@json_errors
@require_http_methods(["PUT"])
@admin_required
def user_daily_orders(request, user_id: int):
    data = json_body(request)
    n = int_param(data.get("daily_orders"), name="daily orders count", minimum=0)
    user = services.set_daily_orders(user_id, n)
    return JsonResponse({
        "message": "User daily orders updated successfully!",
        "daily_orders": user.daily_orders,
        "uncompleted_orders": user.uncompleted_orders,
        "completed_orders": user.completed_orders,
    })


@csrf_exempt
@json_errors
@require_http_methods(["PUT"])
@admin_required
def user_profile(request, user_id: int):
    services.update_user_profile(user_id, json_body(request))
    return JsonResponse({"message": "User profile updated successfully!"})


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@admin_required
def user_wallet(request, user_id: int):
    user = services.assign_wallet(user_id, admin=request.auth_user, notifier=request.notifier)
    return JsonResponse({
        "message": "Wallet address generated and assigned successfully.",
        "walletAddress": user.wallet_address,
    })


@csrf_exempt
@json_errors
@require_http_methods(["DELETE"])
@admin_required
def user_delete(request, user_id: int):
    services.delete_user(user_id)
    return JsonResponse({"message": "User deleted successfully."})


# ---------------------------------------------------------------------
# Recharge requests
# ---------------------------------------------------------------------

@json_errors
@require_http_methods(["GET"])
@admin_required
def recharge_pending(request):
    return JsonResponse({"requests": services.pending_recharges()})


@csrf_exempt
@json_errors
@require_http_methods(["PUT"])
@admin_required
def recharge_approve(request, request_id: int):
    data = json_body(request)
    req = services.approve_recharge(request_id, data.get("admin_notes"), request.notifier)
    return JsonResponse({"message": "Recharge request approved and balance updated.", "request": req.as_dict()})


@csrf_exempt
@json_errors
@require_http_methods(["PUT"])
@admin_required
def recharge_reject(request, request_id: int):
    data = json_body(request)
    req = services.reject_recharge(request_id, data.get("admin_notes"), request.notifier)
    return JsonResponse({"message": "Recharge request rejected.", "request": req.as_dict()})


# ---------------------------------------------------------------------
# Injection plans (lucky orders)
# ---------------------------------------------------------------------

@csrf_exempt
@json_errors
@require_http_methods(["GET", "POST"])
@admin_required
def injection_plans(request, user_id: int):
    if request.method == "POST":
        plan = services.create_injection_plan(user_id, json_body(request))
        return JsonResponse({"message": "Injection plan created.", "plan": plan.as_dict()}, status=201)
    return JsonResponse({"plans": services.list_injection_plans(user_id)})


@csrf_exempt
@json_errors
@require_http_methods(["PUT", "DELETE"])
@admin_required
def injection_plan_detail(request, plan_id: int):
    if request.method == "DELETE":
        services.delete_injection_plan(plan_id)
        return JsonResponse({"message": "Injection plan deleted."})
    plan = services.update_injection_plan(plan_id, json_body(request))
    return JsonResponse({"message": "Injection plan updated.", "plan": plan.as_dict()})
