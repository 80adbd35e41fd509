import json

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from main.models import CustomUser, Product


@pytest.mark.django_db
def test_seed_admins_is_idempotent():
    call_command("seed_admins", "boss", "ops", password="changeme1")
    call_command("seed_admins", "boss", password="changeme1")

    admins = CustomUser.objects.filter(role="admin")
    assert sorted(admins.values_list("username", flat=True)) == ["boss", "ops"]
    boss = admins.get(username="boss")
    assert boss.check_password("changeme1")
    assert boss.check_withdrawal_password("changeme1")


@pytest.mark.django_db
def test_seed_admins_rejects_short_password():
    with pytest.raises(CommandError):
        call_command("seed_admins", "boss", password="123")


@pytest.mark.django_db
def test_seed_products_from_file(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([
        {"name": "Kettle", "price": "19.90", "profit": "0.20"},
        {"name": ""},
    ]))

    call_command("seed_products", file=str(path))
    call_command("seed_products", file=str(path))

    assert list(Product.objects.values_list("name", flat=True)) == ["Kettle"]


@pytest.mark.django_db
def test_seed_products_builtin_sample():
    call_command("seed_products")
    assert Product.objects.count() >= 5


@pytest.mark.django_db
def test_seed_products_missing_file():
    with pytest.raises(CommandError):
        call_command("seed_products", file="/nonexistent/products.json")
