"""
Tests for the admin API: users, quotas, balance injection, wallets and injection plans
"""
from decimal import Decimal

import pytest

from main import errors, services
from main.models import CustomUser, InjectionPlan, LedgerEntry, RechargeRequest
from support_app.models import ChatMessage, DEPOSIT_ADDRESS_PREFIX

from .conftest import RecordingNotifier


def _fresh(user):
    return CustomUser.objects.get(pk=user.pk)


@pytest.mark.django_db
def test_set_daily_orders_resets_window(make_user):
    u = make_user(daily_orders=2)
    u.completed_orders = 7
    u.save()

    services.set_daily_orders(u.pk, 5)

    u = _fresh(u)
    assert (u.daily_orders, u.uncompleted_orders, u.completed_orders) == (5, 5, 7)


@pytest.mark.django_db
def test_set_daily_orders_unknown_user():
    with pytest.raises(errors.UserNotFound):
        services.set_daily_orders(999999, 1)


@pytest.mark.django_db
def test_inject_balance(user, admin_user):
    services.inject_balance(user.pk, "12.34", admin=admin_user)

    assert _fresh(user).wallet_balance == Decimal("112.34")
    entry = LedgerEntry.objects.get(user=user)
    assert entry.kind == LedgerEntry.Kind.INJECT
    assert str(admin_user.pk) in entry.memo


@pytest.mark.django_db
@pytest.mark.parametrize("amount", ["0", "-3", "ten", None])
def test_inject_rejects_bad_amount(user, amount):
    with pytest.raises(errors.ValidationError):
        services.inject_balance(user.pk, amount)


@pytest.mark.django_db
def test_list_users_filters_and_paginates(make_user, admin_user):
    for i in range(12):
        make_user(username=f"member{i}")

    page = services.list_users({"limit": "5", "page": "3"})
    assert page["totalCount"] == 12
    assert len(page["users"]) == 2
    assert all(u["role"] == "user" for u in page["users"])

    found = services.list_users({"username": "member11"})
    assert [u["username"] for u in found["users"]] == ["member11"]


@pytest.mark.django_db
def test_update_profile_fields_and_balance(user):
    services.update_user_profile(user.pk, {
        "username": "alice2",
        "walletAddress": "T" + "C" * 33,
        "walletAmount": "7.50",
        "new_password": "brandnew1",
    })

    u = _fresh(user)
    assert u.username == "alice2"
    assert u.withdrawal_wallet_address == "T" + "C" * 33
    assert u.wallet_balance == Decimal("7.50")
    assert u.check_password("brandnew1")
    assert LedgerEntry.objects.get(user=user).kind == LedgerEntry.Kind.ADJUST


@pytest.mark.django_db
def test_update_profile_requires_a_field(user):
    with pytest.raises(errors.ValidationError):
        services.update_user_profile(user.pk, {"unrelated": 1})


@pytest.mark.django_db
def test_update_profile_refuses_taken_username(user, make_user):
    other = make_user(username="bob")
    with pytest.raises(errors.ValidationError):
        services.update_user_profile(user.pk, {"username": other.username})


@pytest.mark.django_db
def test_assign_wallet_once(user, admin_user):
    rec = RecordingNotifier()

    u = services.assign_wallet(user.pk, admin=admin_user, notifier=rec)

    assert u.wallet_address.startswith("T") and len(u.wallet_address) == 34
    msg = ChatMessage.objects.get(user=user)
    assert msg.message.startswith(DEPOSIT_ADDRESS_PREFIX)
    assert rec.events[0][:2] == (f"user-{user.pk}", "newMessage")

    with pytest.raises(errors.ConflictError):
        services.assign_wallet(user.pk, admin=admin_user, notifier=rec)


@pytest.mark.django_db
def test_delete_user_with_history_conflicts(user):
    RechargeRequest.objects.create(user=user, amount=Decimal("5"))
    with pytest.raises(errors.ConflictError):
        services.delete_user(user.pk)


@pytest.mark.django_db
def test_delete_user(make_user):
    u = make_user()
    services.delete_user(u.pk)
    assert not CustomUser.objects.filter(pk=u.pk).exists()


@pytest.mark.django_db
def test_injection_plan_lifecycle(user):
    plan = services.create_injection_plan(
        user.pk, {"injection_order": 2, "commission_rate": "15", "injections_amount": "80"}
    )
    assert services.list_injection_plans(user.pk)[0]["id"] == plan.pk

    plan = services.update_injection_plan(plan.pk, {"commission_rate": "20"})
    assert plan.commission_rate == Decimal("20.00")
    assert plan.injection_order == 2

    InjectionPlan.objects.filter(pk=plan.pk).update(is_completed=True)
    with pytest.raises(errors.InvalidState):
        services.update_injection_plan(plan.pk, {"commission_rate": "25"})

    services.delete_injection_plan(plan.pk)
    with pytest.raises(errors.NotFoundError):
        services.delete_injection_plan(plan.pk)


@pytest.mark.django_db
@pytest.mark.parametrize("data", [
    {"injection_order": 0, "commission_rate": "1", "injections_amount": "1"},
    {"injection_order": 1, "commission_rate": "-1", "injections_amount": "1"},
    {"injection_order": 1, "commission_rate": "1"},
])
def test_injection_plan_validation(user, data):
    with pytest.raises(errors.ValidationError):
        services.create_injection_plan(user.pk, data)


# ============================================================================
# endpoints
# ============================================================================


@pytest.mark.django_db
def test_admin_endpoints_are_admin_only(api, user):
    assert api.get("/admin/users", as_user=user).status_code == 403
    assert api.get("/admin/users").status_code == 401


@pytest.mark.django_db
def test_admin_user_endpoints(api, user, admin_user, notifier):
    r = api.get("/admin/users", as_user=admin_user)
    assert r.json()["totalCount"] == 1

    r = api.post(f"/admin/users/inject/{user.pk}", {"amount": "10"}, as_user=admin_user)
    assert r.status_code == 200
    assert r.json()["wallet_balance"] == "110.00"

    r = api.put(f"/admin/users/{user.pk}/daily-orders", {"daily_orders": 4}, as_user=admin_user)
    assert r.json()["uncompleted_orders"] == 4

    r = api.put(f"/admin/users/{user.pk}/daily-orders", {"daily_orders": -1}, as_user=admin_user)
    assert r.status_code == 400

    r = api.post(f"/admin/users/{user.pk}/wallet", as_user=admin_user)
    assert r.status_code == 200
    assert notifier.names(f"user-{user.pk}") == ["newMessage"]

    r = api.post(f"/injection-plans/user/{user.pk}", {
        "injection_order": 1, "commission_rate": "5", "injections_amount": "50",
    }, as_user=admin_user)
    assert r.status_code == 201
    plan_id = r.json()["plan"]["id"]

    r = api.delete(f"/injection-plans/{plan_id}", as_user=admin_user)
    assert r.status_code == 200

    api.post("/recharge/submit", {"amount": "5"}, as_user=user)
    r = api.delete(f"/admin/users/{user.pk}", as_user=admin_user)
    assert r.status_code == 409
