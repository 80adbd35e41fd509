# main/task.py
from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from . import errors, ledger
from .currency import q2, rate
from .models import CustomUser, InjectionPlan, LedgerEntry, Product, UserProductRating

log = logging.getLogger(__name__)

# submit_rating outcomes
RECORDED = "recorded"
COMPLETED = "completed"
QUOTA_REACHED = "quota_reached"


def _min_balance() -> Decimal:
    return q2(getattr(settings, "TASK_MIN_BALANCE", "2.00"))


def _dollars(amount: Decimal) -> str:
    """2.00 -> "2", 2.50 -> "2.50"."""
    if amount == amount.to_integral_value():
        return f"{amount:.0f}"
    return str(amount)


def next_product(user: CustomUser) -> Product | None:
    """Unrated products first, then products rated below 5 (not completed)."""
    unrated = Product.objects.exclude(ratings__user=user).order_by("id").first()
    if unrated is not None:
        return unrated
    return (
        Product.objects
        .filter(ratings__user=user, ratings__is_completed=False)
        .order_by("id")
        .first()
    )


def pending_plan_for(user: CustomUser, order: int, *, lock: bool = False) -> InjectionPlan | None:
    qs = InjectionPlan.objects.filter(user=user, injection_order=order, is_completed=False)
    if lock:
        qs = qs.select_for_update()
    return qs.order_by("created_at").first()


def get_task(user: CustomUser) -> dict:
    """
    Next product to rate, or task=None with the reason in "message".
    The slot after the user's completed count may be a lucky order (InjectionPlan).
    """
    out = {
        "task": None,
        "balance": str(user.wallet_balance),
        "taskCount": user.completed_orders,
        "isLuckyOrder": False,
        "luckyOrderCapitalRequired": "0.00",
    }

    if user.uncompleted_orders <= 0:
        return {**out, "message": "You have completed all your daily tasks."}

    if user.wallet_balance < _min_balance():
        return {
            **out,
            "message": (
                "You can't evaluate products with the current amount. "
                f"At least you should recharge ${_dollars(_min_balance())} minimum."
            ),
            "errorCode": "INSUFFICIENT_BALANCE_FOR_TASKS",
        }

    product = next_product(user)
    if product is None:
        return {**out, "message": "No new products available for rating."}

    plan = pending_plan_for(user, user.completed_orders + 1)
    task = {
        "id": product.id,
        "name": product.name,
        "image_url": product.image_url,
        "description": product.description,
        "price": str(product.price),
        "capital_required": str(plan.injections_amount if plan else product.capital_required),
        "profit": str(plan.commission_rate if plan else Decimal("0.00")),
    }
    return {
        **out,
        "task": task,
        "message": "Task fetched.",
        "isLuckyOrder": plan is not None,
        "luckyOrderCapitalRequired": str(plan.injections_amount) if plan else "0.00",
    }


def _valid_rating(value) -> int:
    if isinstance(value, bool):
        raise errors.ValidationError("Product ID and a valid rating (1-5) are required.")
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise errors.ValidationError("Product ID and a valid rating (1-5) are required.")
    if rating != value and str(rating) != str(value).strip():
        raise errors.ValidationError("Product ID and a valid rating (1-5) are required.")
    if not 1 <= rating <= 5:
        raise errors.ValidationError("Product ID and a valid rating (1-5) are required.")
    return rating


def _record_rating(user: CustomUser, product: Product, rating: int) -> UserProductRating:
    row, _ = UserProductRating.objects.update_or_create(
        user=user,
        product=product,
        defaults={"rating": rating, "is_completed": rating == 5},
    )
    return row


def _pay_referrals(user: CustomUser, profit: Decimal) -> None:
    """Each user invited by `user` receives REFERRAL_PROFIT_RATE of the profit."""
    share = q2(profit * rate(getattr(settings, "REFERRAL_PROFIT_RATE", "0.10")))
    if share <= 0:
        return
    for ref_id in user.referrals.order_by("pk").values_list("pk", flat=True):
        invited = ledger.lock_user(ref_id)
        ledger.apply_credit(
            invited, share, kind=LedgerEntry.Kind.REFERRAL, memo=f"referral share from u={user.pk}"
        )


def submit_rating(user_id, product_id, rating) -> dict:
    """
    Upsert the (user, product) rating and, for a 5-star rating with quota left,
    complete one task slot: credit the profit, move the counters, pay referrals.
    All of it runs under the user's row lock in one transaction.
    """
    if product_id in (None, ""):
        raise errors.ValidationError("Product ID and a valid rating (1-5) are required.")
    rating = _valid_rating(rating)
    product = Product.objects.filter(pk=product_id).first() if str(product_id).isdigit() else None
    if product is None:
        raise errors.NotFoundError("Product not found.")

    def _submit(user: CustomUser) -> dict:
        if rating < 5:
            _record_rating(user, product, rating)
            return {"message": "Rating submitted.", "isCompleted": False, "outcome": RECORDED, "profit": "0.00"}

        if user.uncompleted_orders <= 0:
            _record_rating(user, product, rating)
            return {
                "message": "You have already completed all your daily tasks.",
                "isCompleted": False,
                "outcome": QUOTA_REACHED,
                "profit": "0.00",
            }

        next_order = user.completed_orders + 1
        plan = pending_plan_for(user, next_order, lock=True)
        if plan is not None:
            capital = q2(plan.injections_amount)
            if user.wallet_balance < capital:
                raise errors.InsufficientFunds(
                    f"Insufficient balance for this lucky order. You need ${capital}.",
                    isCompleted=False,
                )
            plan.is_completed = True
            plan.completed_at = timezone.now()
            plan.save(update_fields=["is_completed", "completed_at", "updated_at"])
            profit = q2(plan.commission_rate)
            kind = LedgerEntry.Kind.LUCKY_PROFIT
            log.info("lucky order #%s consumed u=%s order=%s", plan.pk, user.pk, next_order)
        else:
            profit = q2(user.wallet_balance * rate(getattr(settings, "TASK_PROFIT_RATE", "0.05")))
            kind = LedgerEntry.Kind.TASK_PROFIT

        _record_rating(user, product, rating)
        if profit > 0:
            ledger.apply_credit(user, profit, kind=kind, memo=f"task #{next_order} product {product.pk}")

        user.completed_orders += 1
        user.uncompleted_orders = max(0, user.uncompleted_orders - 1)
        if user.uncompleted_orders == 0:
            user.daily_orders = 0
        user.last_activity_at = timezone.now()
        user.save(update_fields=["completed_orders", "uncompleted_orders", "daily_orders", "last_activity_at"])

        if profit > 0:
            _pay_referrals(user, profit)

        message = (
            f"Lucky task completed! You earned ${profit}."
            if plan is not None else f"Task completed successfully! You earned ${profit}."
        )
        return {"message": message, "isCompleted": True, "outcome": COMPLETED, "profit": str(profit)}

    return ledger.run_locked(user_id, _submit)


def dashboard_summary(user: CustomUser) -> dict:
    return {
        "completedOrders": user.completed_orders,
        "uncompletedOrders": user.uncompleted_orders,
        "dailyOrders": user.daily_orders,
    }
