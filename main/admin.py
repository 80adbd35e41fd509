from __future__ import annotations

from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html

from support_app.notifications import build_notifier

from . import errors, services
from .models import (
    CustomUser,
    LedgerEntry,
    Product, UserProductRating,
    InjectionPlan,
    RechargeRequest, RechargeStatus, RechargeTransaction,
    Withdrawal,
)


# Change admin names
admin.site.site_header = "TaskHub Administration"
admin.site.site_title = "TaskHub Admin"
admin.site.index_title = "Welcome to TaskHub Administration"


# ======================
# Users
# ======================
class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    can_delete = False
    fields = ("created_at", "kind", "amount", "balance_after", "memo")
    readonly_fields = fields
    ordering = ("-created_at",)
    show_change_link = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    model = CustomUser

    list_display = (
        "id", "username", "phone", "role",
        "wallet_balance", "daily_orders", "completed_orders", "uncompleted_orders",
        "invitation_code", "referrer",
        "is_active", "date_joined",
    )
    list_display_links = ("id", "username")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("username", "phone", "invitation_code", "wallet_address", "withdrawal_wallet_address")
    ordering = ("-date_joined",)
    raw_id_fields = ("referrer",)

    fieldsets = (
        (None, {"fields": ("username", "phone", "password", "role")}),
        ("Referral", {"fields": ("invitation_code", "referrer")}),
        ("Wallet", {"fields": ("wallet_balance", "wallet_address", "withdrawal_wallet_address")}),
        ("Daily tasks", {"fields": ("daily_orders", "completed_orders", "uncompleted_orders", "last_activity_at")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("username", "phone", "password1", "password2", "role"),
        }),
    )

    # balance and counters move through the ledger and task services only
    readonly_fields = (
        "wallet_balance", "completed_orders", "uncompleted_orders",
        "invitation_code", "wallet_address", "last_activity_at",
        "date_joined", "last_login",
    )
    inlines = [LedgerEntryInline]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "kind", "amount", "balance_after", "memo", "created_at")
    list_filter = ("kind", "created_at")
    search_fields = ("user__username", "user__phone", "memo")
    list_select_related = ("user",)
    readonly_fields = ("user", "kind", "amount", "balance_after", "memo", "created_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================
# Catalog / ratings
# ======================
@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "price", "profit", "capital_required", "image_thumb", "created_at")
    search_fields = ("name", "description")

    @admin.display(description="Image")
    def image_thumb(self, obj):
        if not obj.image_url:
            return "-"
        return format_html('<img src="{}" style="height:32px;border-radius:4px;" alt="" />', obj.image_url)


@admin.register(UserProductRating)
class UserProductRatingAdmin(admin.ModelAdmin):
    list_display = ("user", "product", "rating", "is_completed", "updated_at")
    list_filter = ("rating", "is_completed")
    search_fields = ("user__username", "user__phone", "product__name")
    list_select_related = ("user", "product")


@admin.register(InjectionPlan)
class InjectionPlanAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "injection_order", "commission_rate", "injections_amount", "is_completed", "completed_at")
    list_filter = ("is_completed",)
    search_fields = ("user__username", "user__phone")
    raw_id_fields = ("user",)
    readonly_fields = ("completed_at", "created_at", "updated_at")


# ======================
# Recharges
# ======================
def _decide(request, queryset, decide, done_label):
    notifier = build_notifier()
    done = failed = 0
    for req in queryset.filter(status=RechargeStatus.PENDING):
        try:
            decide(req.pk, "", notifier)
            done += 1
        except errors.ServiceError as e:
            failed += 1
            messages.error(request, f"Recharge #{req.pk}: {e.message}")
    if done:
        messages.success(request, f"{done_label} {done} recharge request(s).")
    elif not failed:
        messages.info(request, "No pending requests selected.")


@admin.action(description="Approve selected pending recharges (credit balance)")
def approve_recharges(modeladmin, request, queryset):
    _decide(request, queryset, services.approve_recharge, "Approved")


@admin.action(description="Reject selected pending recharges")
def reject_recharges(modeladmin, request, queryset):
    _decide(request, queryset, services.reject_recharge, "Rejected")


@admin.register(RechargeRequest)
class RechargeRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "currency", "status_badge", "injection_plan", "created_at", "decided_at")
    list_filter = ("status", "currency", "created_at")
    search_fields = ("id", "user__username", "user__phone", "contact_info")
    list_select_related = ("user",)
    readonly_fields = ("user", "amount", "currency", "receipt_image", "contact_info", "status", "created_at", "decided_at")
    actions = [approve_recharges, reject_recharges]

    def status_badge(self, obj):
        colors = {
            "pending":  "#f59e0b",
            "approved": "#10b981",
            "rejected": "#ef4444",
        }
        c = colors.get(obj.status, "#6b7280")
        return format_html(
            '<span style="padding:2px 8px;border-radius:9999px;background:{}20;color:{};font-weight:600;">{}</span>',
            c, c, obj.get_status_display(),
        )
    status_badge.short_description = "Status"


@admin.register(RechargeTransaction)
class RechargeTransactionAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "user", "amount", "currency", "status", "address", "txid_short", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("transaction_id", "txid", "address", "user__username", "user__phone")
    list_select_related = ("user",)
    readonly_fields = ("transaction_id", "confirmed_at", "created_at", "updated_at")

    def txid_short(self, obj):
        return (obj.txid[:10] + "…") if obj.txid else ""
    txid_short.short_description = "Tx"


# ======================
# Withdrawals
# ======================
@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "currency", "network", "status", "to_address", "created_at")
    list_filter = ("status", "network", "created_at")
    search_fields = ("id", "user__username", "user__phone", "to_address", "transaction_id")
    list_select_related = ("user",)
    readonly_fields = ("user", "amount", "currency", "network", "to_address", "transaction_id", "created_at", "updated_at")
