from django.urls import path

from . import views
from . import user_taskview as task_views
from . import admin_view as adm

urlpatterns = [
    # auth
    path("auth/signup", views.signup, name="signup"),
    path("auth/login", views.login, name="login"),

    # user self-service
    path("users/profile", views.profile, name="profile"),
    path("users/my-referrals", views.my_referrals, name="my_referrals"),
    path("users/withdrawal-address", views.withdrawal_address, name="withdrawal_address"),
    path("users/password", views.change_password, name="change_password"),
    path("users/withdrawal-password", views.change_withdrawal_password, name="change_withdrawal_password"),
    path("users/withdraw", views.withdraw, name="withdraw"),
    path("users/withdrawals", views.withdrawals, name="withdrawals"),

    # tasks
    path("tasks/task", task_views.get_task, name="get_task"),
    path("tasks/submit-rating", task_views.submit_rating, name="submit_rating"),
    path("tasks/dashboard-summary", task_views.dashboard_summary, name="dashboard_summary"),

    # recharge requests
    path("recharge/submit", views.recharge_submit, name="recharge_submit"),
    path("recharge/user/rejected", views.recharge_rejected, name="recharge_rejected"),
    path("recharge/history/<int:user_id>", views.recharge_history, name="recharge_history"),
    path("recharge/admin/pending", adm.recharge_pending, name="recharge_pending"),
    path("recharge/admin/approve/<int:request_id>", adm.recharge_approve, name="recharge_approve"),
    path("recharge/admin/reject/<int:request_id>", adm.recharge_reject, name="recharge_reject"),

    # recharge transactions (watched deposits)
    path("recharge-transactions", views.recharge_transaction_open, name="recharge_transaction_open"),
    path(
        "recharge-transactions/history/<int:user_id>",
        views.recharge_transaction_history,
        name="recharge_transaction_history",
    ),
    path(
        "recharge-transactions/webhook/confirm",
        views.recharge_transaction_webhook,
        name="recharge_transaction_webhook",
    ),

    # admin
    path("admin/users", adm.users, name="admin_users"),
    path("admin/users/inject/<int:user_id>", adm.user_inject, name="admin_user_inject"),
    path("admin/users/<int:user_id>/daily-orders", adm.user_daily_orders, name="admin_user_daily_orders"),
    path("admin/users/<int:user_id>/profile", adm.user_profile, name="admin_user_profile"),
    path("admin/users/<int:user_id>/wallet", adm.user_wallet, name="admin_user_wallet"),
    path("admin/users/<int:user_id>", adm.user_delete, name="admin_user_delete"),

    # injection plans
    path("injection-plans/user/<int:user_id>", adm.injection_plans, name="injection_plans"),
    path("injection-plans/<int:plan_id>", adm.injection_plan_detail, name="injection_plan_detail"),
]
