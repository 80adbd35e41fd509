"""
Tests for the rating task flow: task selection, quota counters, profit, lucky orders and referral shares
"""
from decimal import Decimal

import pytest

from main import errors, task
from main.models import CustomUser, InjectionPlan, LedgerEntry, UserProductRating


def _fresh(user):
    return CustomUser.objects.get(pk=user.pk)


@pytest.fixture
def worker(make_user):
    return make_user("100.00", daily_orders=3, username="worker")


# ============================================================================
# get_task
# ============================================================================


@pytest.mark.django_db
def test_no_quota_means_no_task(make_user, products):
    idle = make_user("100.00")
    out = task.get_task(idle)
    assert out["task"] is None
    assert "completed all" in out["message"]


@pytest.mark.django_db
def test_low_balance_blocks_tasks(make_user, products):
    poor = make_user("1.99", daily_orders=2)
    out = task.get_task(poor)
    assert out["task"] is None
    assert out["errorCode"] == "INSUFFICIENT_BALANCE_FOR_TASKS"
    assert "recharge $2 minimum." in out["message"]


@pytest.mark.django_db
def test_no_products_left(worker):
    out = task.get_task(worker)
    assert out["task"] is None
    assert out["message"] == "No new products available for rating."


@pytest.mark.django_db
def test_task_prefers_unrated_products(worker, products):
    assert task.get_task(worker)["task"]["id"] == products[0].id

    task.submit_rating(worker.pk, products[0].id, 3)
    assert task.get_task(_fresh(worker))["task"]["id"] == products[1].id


@pytest.mark.django_db
def test_products_rated_below_five_come_back(worker, products):
    for p in products:
        task.submit_rating(worker.pk, p.id, 2)
    assert task.get_task(_fresh(worker))["task"]["id"] == products[0].id


@pytest.mark.django_db
def test_lucky_order_is_flagged(worker, products):
    InjectionPlan.objects.create(
        user=worker, injection_order=1, commission_rate=Decimal("30"), injections_amount=Decimal("200")
    )
    out = task.get_task(worker)
    assert out["isLuckyOrder"] is True
    assert out["luckyOrderCapitalRequired"] == "200.00"
    assert out["task"]["profit"] == "30.00"


# ============================================================================
# submit_rating
# ============================================================================


@pytest.mark.django_db
def test_low_rating_is_recorded_without_progress(worker, products):
    out = task.submit_rating(worker.pk, products[0].id, 4)

    assert out["outcome"] == task.RECORDED
    assert out["isCompleted"] is False
    u = _fresh(worker)
    assert (u.completed_orders, u.uncompleted_orders, u.wallet_balance) == (0, 3, Decimal("100.00"))
    assert UserProductRating.objects.get(user=worker, product=products[0]).rating == 4


@pytest.mark.django_db
def test_five_star_completes_one_slot(worker, products):
    out = task.submit_rating(worker.pk, products[0].id, 5)

    assert out["outcome"] == task.COMPLETED
    assert out["profit"] == "5.00"
    u = _fresh(worker)
    assert u.wallet_balance == Decimal("105.00")
    assert (u.completed_orders, u.uncompleted_orders, u.daily_orders) == (1, 2, 3)
    assert UserProductRating.objects.get(user=worker, product=products[0]).is_completed


@pytest.mark.django_db
def test_rerating_upserts_the_same_row(worker, products):
    task.submit_rating(worker.pk, products[0].id, 2)
    task.submit_rating(worker.pk, products[0].id, 5)

    row = UserProductRating.objects.get(user=worker, product=products[0])
    assert (row.rating, row.is_completed) == (5, True)
    assert UserProductRating.objects.filter(user=worker).count() == 1


@pytest.mark.django_db
def test_last_slot_resets_daily_orders(make_user, products):
    one_left = make_user("100.00", daily_orders=1)
    task.submit_rating(one_left.pk, products[0].id, 5)

    u = _fresh(one_left)
    assert (u.completed_orders, u.uncompleted_orders, u.daily_orders) == (1, 0, 0)


@pytest.mark.django_db
def test_five_star_without_quota_is_recorded_only(make_user, products):
    idle = make_user("100.00")
    out = task.submit_rating(idle.pk, products[0].id, 5)

    assert out["outcome"] == task.QUOTA_REACHED
    u = _fresh(idle)
    assert (u.completed_orders, u.wallet_balance) == (0, Decimal("100.00"))
    assert UserProductRating.objects.filter(user=idle).exists()


@pytest.mark.django_db
def test_referral_share_paid_to_invited_users(worker, make_user, products):
    invited = [make_user(referrer=worker), make_user(referrer=worker)]

    task.submit_rating(worker.pk, products[0].id, 5)

    for u in invited:
        assert _fresh(u).wallet_balance == Decimal("0.50")
        assert LedgerEntry.objects.get(user=u).kind == LedgerEntry.Kind.REFERRAL


@pytest.mark.django_db
def test_lucky_order_needs_capital(worker, products):
    plan = InjectionPlan.objects.create(
        user=worker, injection_order=1, commission_rate=Decimal("30"), injections_amount=Decimal("200")
    )
    with pytest.raises(errors.InsufficientFunds) as exc:
        task.submit_rating(worker.pk, products[0].id, 5)

    assert exc.value.payload()["isCompleted"] is False
    plan.refresh_from_db()
    assert not plan.is_completed
    assert _fresh(worker).completed_orders == 0
    assert not UserProductRating.objects.filter(user=worker).exists()


@pytest.mark.django_db
def test_lucky_order_pays_commission(make_user, products):
    rich = make_user("300.00", daily_orders=2)
    plan = InjectionPlan.objects.create(
        user=rich, injection_order=1, commission_rate=Decimal("30"), injections_amount=Decimal("200")
    )

    out = task.submit_rating(rich.pk, products[0].id, 5)

    assert out["profit"] == "30.00"
    plan.refresh_from_db()
    assert plan.is_completed and plan.completed_at is not None
    assert _fresh(rich).wallet_balance == Decimal("330.00")
    assert LedgerEntry.objects.get(user=rich).kind == LedgerEntry.Kind.LUCKY_PROFIT

    # the second slot is an ordinary task again
    assert task.get_task(_fresh(rich))["isLuckyOrder"] is False


@pytest.mark.django_db
@pytest.mark.parametrize("rating", [0, 6, "abc", None, True, 4.5])
def test_invalid_rating(worker, products, rating):
    with pytest.raises(errors.ValidationError):
        task.submit_rating(worker.pk, products[0].id, rating)


@pytest.mark.django_db
def test_unknown_product(worker):
    with pytest.raises(errors.NotFoundError):
        task.submit_rating(worker.pk, 987654, 5)


# ============================================================================
# endpoints
# ============================================================================


@pytest.mark.django_db
def test_task_endpoints(api, worker, products):
    r = api.get("/tasks/task", as_user=worker)
    assert r.status_code == 200
    product_id = r.json()["task"]["id"]

    r = api.post("/tasks/submit-rating", {"productId": product_id, "rating": 5}, as_user=worker)
    assert r.status_code == 200
    assert r.json()["isCompleted"] is True

    r = api.get("/tasks/dashboard-summary", as_user=worker)
    assert r.json() == {"completedOrders": 1, "uncompletedOrders": 2, "dailyOrders": 3}


@pytest.mark.django_db
def test_task_endpoints_require_token(api):
    assert api.get("/tasks/task").status_code == 401


@pytest.mark.django_db
def test_counters_mid_window(make_user, products):
    """daily=5, completed=3, uncompleted=2: a five-star moves one slot, a three-star moves none"""
    u = make_user("100.00", daily_orders=5)
    CustomUser.objects.filter(pk=u.pk).update(completed_orders=3, uncompleted_orders=2)

    task.submit_rating(u.pk, products[0].id, 5)
    u = _fresh(u)
    assert (u.completed_orders, u.uncompleted_orders, u.daily_orders) == (4, 1, 5)

    task.submit_rating(u.pk, products[1].id, 3)
    u = _fresh(u)
    assert (u.completed_orders, u.uncompleted_orders) == (4, 1)


@pytest.mark.django_db
def test_quota_is_checked_before_balance(make_user, products):
    broke_and_done = make_user("0.50")
    out = task.get_task(broke_and_done)
    assert "completed all" in out["message"]
    assert "errorCode" not in out
