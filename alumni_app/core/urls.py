from django.urls import path

from core import views_approvals, views_health, views_login_history, views_membership, views_memoirs

urlpatterns = [
    path("healthz", views_health.healthz, name="healthz"),
    path("readyz", views_health.readyz, name="readyz"),
    path("api/approve", views_approvals.approve, name="api-approve"),
    path("api/pending", views_approvals.pending, name="api-pending"),
    path("api/dashboard", views_approvals.dashboard, name="api-dashboard"),
    path("api/membership", views_membership.membership_privileges, name="api-membership"),
    path("api/membership/toggle", views_membership.membership_toggle, name="api-membership-toggle"),
    path("api/log-event", views_login_history.log_event, name="api-log-event"),
    path("api/login-history", views_login_history.login_history, name="api-login-history"),
    path("api/memoirs", views_memoirs.memoirs, name="api-memoirs"),
]
