# main/models.py
from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.hashers import make_password, check_password
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0.00")


def money_field(**kwargs):
    kwargs.setdefault("max_digits", 14)
    kwargs.setdefault("decimal_places", 2)
    return models.DecimalField(**kwargs)


def generate_invitation_code() -> str:
    """8 chars taken from a uuid4, the same shape the referral links use."""
    return uuid.uuid4().hex[:8]


# ---------- Custom User ----------
class Role(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


class CustomUserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, username, phone, password, **extra_fields):
        if not phone:
            raise ValueError("The phone number must be set")
        if not username:
            raise ValueError("The username must be set")
        phone = phone.replace(" ", "").replace("-", "")
        if not extra_fields.get("invitation_code"):
            extra_fields["invitation_code"] = self.unique_invitation_code()
        user = self.model(username=username, phone=phone, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def unique_invitation_code(self) -> str:
        code = generate_invitation_code()
        while self.filter(invitation_code=code).exists():
            code = generate_invitation_code()
        return code

    def create_user(self, username, phone, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", Role.USER)
        return self._create_user(username, phone, password, **extra_fields)

    def create_superuser(self, username, phone, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", Role.ADMIN)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(username, phone, password, **extra_fields)


class CustomUser(AbstractUser):
    phone = models.CharField(max_length=20, unique=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER, db_index=True)

    # referral graph
    invitation_code = models.CharField(max_length=16, unique=True)
    referrer = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.SET_NULL, related_name="referrals"
    )

    # withdrawal password (hashed, separate from the login password)
    withdrawal_password = models.CharField(max_length=128, blank=True, default="")
    withdrawal_wallet_address = models.CharField(max_length=64, blank=True, default="")

    # ledger balance; only main.ledger writes it
    wallet_balance = money_field(default=ZERO, validators=[MinValueValidator(ZERO)])

    # daily task quota
    daily_orders = models.PositiveIntegerField(default=0)
    completed_orders = models.PositiveIntegerField(default=0)
    uncompleted_orders = models.PositiveIntegerField(default=0)
    last_activity_at = models.DateTimeField(null=True, blank=True)

    # simulated TRON deposit account, assigned once by an admin
    wallet_address = models.CharField(max_length=64, null=True, blank=True, unique=True)
    wallet_private_key = models.CharField(max_length=128, blank=True, default="")

    USERNAME_FIELD = "phone"
    REQUIRED_FIELDS = ["username"]

    objects = CustomUserManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(wallet_balance__gte=0),
                name="user_wallet_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.username} ({self.phone})"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    # ---------- withdrawal password ----------
    def set_withdrawal_password(self, raw: str) -> None:
        self.withdrawal_password = make_password(raw)

    def check_withdrawal_password(self, raw: str) -> bool:
        if not self.withdrawal_password or not raw:
            return False
        return check_password(raw, self.withdrawal_password)

    def public_payload(self) -> dict:
        return {"id": self.id, "username": self.username, "phone": self.phone, "role": self.role}


# ---------- Ledger audit ----------
class LedgerEntry(models.Model):
    class Kind(models.TextChoices):
        RECHARGE = "RECHARGE", "Recharge approved"
        DEPOSIT = "DEPOSIT", "On-chain deposit"
        WITHDRAW = "WITHDRAW", "Withdrawal"
        TASK_PROFIT = "TASK_PROFIT", "Task profit"
        LUCKY_PROFIT = "LUCKY_PROFIT", "Lucky order commission"
        REFERRAL = "REFERRAL", "Referral profit"
        INJECT = "INJECT", "Admin injection"
        ADJUST = "ADJUST", "Admin adjustment"

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="ledger_entries")
    kind = models.CharField(max_length=16, choices=Kind.choices)
    amount = money_field()  # signed: credits > 0, debits < 0
    balance_after = money_field()
    memo = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["user", "created_at"], name="ledger_user_created_idx")]

    def __str__(self):
        return f"{self.kind} {self.amount} u={self.user_id}"


# ---------- Catalog ----------
class Product(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = money_field(default=ZERO)
    profit = money_field(default=ZERO)
    capital_required = money_field(default=ZERO)
    image_url = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


class UserProductRating(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="product_ratings")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="ratings")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    is_completed = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="uniq_user_product_rating"),
        ]

    def __str__(self):
        return f"u={self.user_id} p={self.product_id} -> {self.rating}"


# ======================================================
# Lucky orders: admin-scheduled task slots
# ======================================================
class InjectionPlan(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="injection_plans")
    injection_order = models.PositiveIntegerField(help_text="1-based task ordinal this plan takes over.")
    commission_rate = money_field(help_text="Profit credited when the lucky order completes.")
    injections_amount = money_field(help_text="Capital the user must hold to complete it.")
    is_completed = models.BooleanField(default=False, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Lucky order"
        verbose_name_plural = "Lucky orders"
        ordering = ["injection_order", "created_at"]
        indexes = [models.Index(fields=["user", "injection_order", "is_completed"], name="plan_user_order_idx")]

    def __str__(self):
        return f"Plan u={self.user_id} #{self.injection_order} [{'used' if self.is_completed else 'pending'}]"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "injection_order": self.injection_order,
            "commission_rate": str(self.commission_rate),
            "injections_amount": str(self.injections_amount),
            "is_completed": self.is_completed,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ---------- Recharges ----------
class RechargeStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class RechargeRequest(models.Model):
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="recharge_requests")
    amount = money_field(validators=[MinValueValidator(Decimal("0.01"))])
    currency = models.CharField(max_length=10, default="USDT")
    receipt_image = models.CharField(max_length=500, blank=True, default="")
    contact_info = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(
        max_length=10, choices=RechargeStatus.choices, default=RechargeStatus.PENDING, db_index=True
    )
    admin_notes = models.TextField(blank=True, default="")
    injection_plan = models.ForeignKey(
        InjectionPlan, null=True, blank=True, on_delete=models.SET_NULL, related_name="recharge_requests"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Recharge#{self.pk} u={self.user_id} {self.amount} {self.currency} ({self.status})"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "receipt_image": self.receipt_image,
            "contact_info": self.contact_info,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "injection_plan_id": self.injection_plan_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class RechargeTransaction(models.Model):
    """Expected on-chain deposit to the user's generated address (watched, not user-claimed)."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        EXPIRED = "expired", "Expired"

    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="recharge_transactions")
    transaction_id = models.CharField(max_length=32, unique=True, editable=False)
    amount = money_field(validators=[MinValueValidator(Decimal("0.01"))])
    currency = models.CharField(max_length=10, default="USDT")
    address = models.CharField(max_length=64)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    txid = models.CharField(max_length=128, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"RechargeTxn {self.transaction_id} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.transaction_id:
            self.transaction_id = uuid.uuid4().hex[:16].upper()
        super().save(*args, **kwargs)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "transaction_id": self.transaction_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "status": self.status,
            "address": self.address,
            "txid": self.txid,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# ---------- Withdrawals ----------
class WithdrawalStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class Network(models.TextChoices):
    TRC20 = "TRC20", "TRON (TRC20)"


class Withdrawal(models.Model):
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="withdrawals")
    amount = money_field(validators=[MinValueValidator(Decimal("0.01"))])
    currency = models.CharField(max_length=10, default="USDT")
    network = models.CharField(max_length=10, choices=Network.choices, default=Network.TRC20)
    to_address = models.CharField(max_length=64)
    status = models.CharField(
        max_length=12, choices=WithdrawalStatus.choices, default=WithdrawalStatus.PENDING, db_index=True
    )
    transaction_id = models.CharField(max_length=128, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Withdrawal#{self.pk} u={self.user_id} {self.amount} {self.currency} ({self.status})"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": str(self.amount),
            "currency": self.currency,
            "network": self.network,
            "to_address": self.to_address,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
