# main/management/commands/seed_products.py
from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from main.models import Product

SAMPLE_PRODUCTS = [
    {"name": "Wireless Earbuds", "price": "59.99", "profit": "0.60", "image_url": "/media/products/earbuds.jpg"},
    {"name": "Smart Watch", "price": "149.00", "profit": "1.49", "image_url": "/media/products/watch.jpg"},
    {"name": "Espresso Machine", "price": "239.50", "profit": "2.40", "image_url": "/media/products/espresso.jpg"},
    {"name": "Running Shoes", "price": "89.00", "profit": "0.89", "image_url": "/media/products/shoes.jpg"},
    {"name": "Desk Lamp", "price": "24.99", "profit": "0.25", "image_url": "/media/products/lamp.jpg"},
]


class Command(BaseCommand):
    help = "Load catalog products from a JSON list (or a small built-in sample)."

    def add_arguments(self, parser):
        parser.add_argument("--file", type=str, help="JSON file: [{name, price, profit, capital_required, image_url, description}]")
        parser.add_argument("--clear", action="store_true", help="Delete existing products first")

    def _load(self, path: str | None) -> list[dict]:
        if not path:
            return SAMPLE_PRODUCTS
        p = Path(path)
        if not p.exists():
            raise CommandError(f"No such file: {path}")
        try:
            rows = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {path}: {e}")
        if not isinstance(rows, list):
            raise CommandError("Expected a JSON list of products.")
        return rows

    @transaction.atomic
    def handle(self, *args, **opts):
        rows = self._load(opts.get("file"))
        if opts["clear"]:
            Product.objects.all().delete()

        created = 0
        for row in rows:
            name = str(row.get("name") or "").strip()
            if not name:
                self.stdout.write(self.style.WARNING("Skipping product without a name."))
                continue
            try:
                defaults = {
                    "price": Decimal(str(row.get("price", "0"))),
                    "profit": Decimal(str(row.get("profit", "0"))),
                    "capital_required": Decimal(str(row.get("capital_required", "0"))),
                    "image_url": str(row.get("image_url") or row.get("image") or ""),
                    "description": str(row.get("description") or ""),
                }
            except InvalidOperation:
                raise CommandError(f"Invalid amount for product {name!r}")
            _, was_created = Product.objects.update_or_create(name=name, defaults=defaults)
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"Products loaded: {len(rows)} rows, {created} new."))
