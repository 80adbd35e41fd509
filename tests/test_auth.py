"""
Tests for signup, portal-specific login, JWT guards and self-service settings
"""
from datetime import datetime, timedelta, timezone

import pytest
from django.conf import settings
from jose import jwt

from main import accounts, errors
from main.auth import decode_token, issue_token
from main.models import CustomUser

from .conftest import PASSWORD, TRC20_ADDRESS, WITHDRAWAL_PASSWORD


def _signup_data(referrer, **overrides):
    data = {
        "username": "newbie",
        "phone": "+1 (415) 555-7788",
        "password": "hunter22",
        "confirm_password": "hunter22",
        "withdrawal_password": "wd-secret",
        "referralCode": referrer.invitation_code,
    }
    data.update(overrides)
    return data


# ============================================================================
# signup
# ============================================================================


@pytest.mark.django_db
def test_signup_links_referrer(user):
    new = accounts.signup(_signup_data(user))

    assert new.referrer_id == user.pk
    assert new.phone == "+14155557788"
    assert new.role == "user"
    assert len(new.invitation_code) == 8
    assert new.check_withdrawal_password("wd-secret")
    assert not new.check_withdrawal_password("hunter22")


@pytest.mark.django_db
@pytest.mark.parametrize("overrides", [
    {"referralCode": ""},
    {"referralCode": "nope0000"},
    {"confirm_password": "different"},
    {"password": "short", "confirm_password": "short"},
    {"withdrawal_password": ""},
    {"phone": "not-a-phone"},
])
def test_signup_validation(user, overrides):
    with pytest.raises(errors.ValidationError):
        accounts.signup(_signup_data(user, **overrides))


@pytest.mark.django_db
def test_signup_duplicates(user):
    with pytest.raises(errors.ValidationError):
        accounts.signup(_signup_data(user, phone=user.phone))
    with pytest.raises(errors.ValidationError):
        accounts.signup(_signup_data(user, username=user.username))


# ============================================================================
# login
# ============================================================================


@pytest.mark.django_db
def test_user_logs_in_with_phone(user):
    out = accounts.login({"phone": user.phone, "password": PASSWORD})
    assert decode_token(out["token"])["id"] == user.pk
    assert out["user"]["role"] == "user"


@pytest.mark.django_db
def test_admin_logs_in_with_username(admin_user):
    out = accounts.login({"username": admin_user.username, "password": PASSWORD})
    assert decode_token(out["token"])["role"] == "admin"


@pytest.mark.django_db
def test_portals_refuse_the_other_role(user, admin_user):
    with pytest.raises(errors.Forbidden):
        accounts.login({"username": user.username, "password": PASSWORD})
    with pytest.raises(errors.Forbidden):
        accounts.login({"phone": admin_user.phone, "password": PASSWORD})


@pytest.mark.django_db
def test_bad_credentials(user):
    with pytest.raises(errors.ValidationError):
        accounts.login({"phone": user.phone, "password": "wrong-one"})
    with pytest.raises(errors.ValidationError):
        accounts.login({"phone": "+14155559999", "password": PASSWORD})


# ============================================================================
# tokens and guards
# ============================================================================


@pytest.mark.django_db
def test_token_expires_after_ttl(user):
    payload = jwt.get_unverified_claims(issue_token(user))
    assert payload["exp"] - payload["iat"] == settings.JWT_TTL_DAYS * 86400


@pytest.mark.django_db
def test_expired_and_forged_tokens_rejected(user):
    past = datetime.now(timezone.utc) - timedelta(days=1)
    expired = jwt.encode({"id": user.pk, "role": "user", "exp": past}, settings.JWT_SECRET, algorithm="HS256")
    forged = jwt.encode({"id": user.pk, "role": "admin"}, "not-the-secret", algorithm="HS256")

    for token in (expired, forged, "garbage"):
        with pytest.raises(errors.AuthError):
            decode_token(token)


@pytest.mark.django_db
def test_profile_endpoint(api, user):
    r = api.get("/users/profile", as_user=user)
    assert r.status_code == 200
    assert r.json()["wallet_balance"] == "100.00"

    r = api.client.get("/users/profile", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


@pytest.mark.django_db
def test_signup_and_login_endpoints(api, user):
    r = api.post("/auth/signup", _signup_data(user))
    assert r.status_code == 201

    r = api.post("/auth/login", {"phone": "+14155557788", "password": "hunter22"})
    assert r.status_code == 200
    assert "token" in r.json()

    r = api.post("/auth/login", "{not json")
    assert r.status_code == 400
    assert r.json()["message"] == "invalid JSON"


@pytest.mark.django_db
def test_referrals_listing(api, user, make_user):
    make_user(referrer=user, username="friend")
    r = api.get("/users/my-referrals", as_user=user)
    assert [x["username"] for x in r.json()["referrals"]] == ["friend"]


# ============================================================================
# self-service settings
# ============================================================================


@pytest.mark.django_db
def test_set_withdrawal_address(user):
    accounts.set_withdrawal_address(user, {"withdrawal_wallet_address": TRC20_ADDRESS, "withdrawal_password": WITHDRAWAL_PASSWORD})
    assert CustomUser.objects.get(pk=user.pk).withdrawal_wallet_address == TRC20_ADDRESS

    with pytest.raises(errors.InvalidCredential):
        accounts.set_withdrawal_address(user, {"withdrawal_wallet_address": TRC20_ADDRESS, "withdrawal_password": "xxxxxx"})
    with pytest.raises(errors.ValidationError):
        accounts.set_withdrawal_address(user, {"withdrawal_wallet_address": "bad", "withdrawal_password": WITHDRAWAL_PASSWORD})


@pytest.mark.django_db
def test_change_passwords(user):
    accounts.change_password(user, {"current_password": PASSWORD, "new_password": "another1"})
    assert CustomUser.objects.get(pk=user.pk).check_password("another1")

    with pytest.raises(errors.InvalidCredential):
        accounts.change_password(user, {"current_password": PASSWORD, "new_password": "another2"})

    accounts.change_withdrawal_password(user, {
        "current_withdrawal_password": WITHDRAWAL_PASSWORD,
        "new_withdrawal_password": "wd-another",
    })
    assert CustomUser.objects.get(pk=user.pk).check_withdrawal_password("wd-another")

    with pytest.raises(errors.ValidationError):
        accounts.change_withdrawal_password(user, {
            "current_withdrawal_password": "wd-another",
            "new_withdrawal_password": "123",
        })
