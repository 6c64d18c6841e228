from __future__ import annotations

import datetime
import uuid
from typing import override

from django.db import models
from django.db.models import Q
from django.utils import timezone


class ProfileQuerySet(models.QuerySet["Profile"]):
    def pending(self) -> ProfileQuerySet:
        return self.filter(status=Profile.Status.pending)

    def for_email(self, email: str) -> ProfileQuerySet:
        return self.filter(email__iexact=str(email or "").strip())


class Profile(models.Model):
    """Alumni registration record; the target of approval decisions."""

    class Status(models.TextChoices):
        pending = "PENDING", "Pending"
        approved = "APPROVED", "Approved"
        rejected = "REJECTED", "Rejected"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(db_index=True)
    full_name = models.CharField(max_length=255, blank=True, default="")
    graduation_year = models.PositiveIntegerField(blank=True, null=True, db_index=True)
    degree = models.CharField(max_length=64, blank=True, default="")
    branch = models.CharField(max_length=128, blank=True, default="")
    company = models.CharField(max_length=255, blank=True, default="")
    designation = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=128, blank=True, default="")
    country = models.CharField(max_length=128, blank=True, default="")
    avatar_url = models.CharField(max_length=2048, blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.pending, db_index=True)
    is_approved = models.BooleanField(default=False)
    approved_by_email = models.EmailField(blank=True, default="")
    approved_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProfileQuerySet.as_manager()

    class Meta:
        ordering = ("created_at", "id")
        indexes = [
            models.Index(fields=["status", "graduation_year"], name="profile_status_year"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name or self.email} ({self.status})"

    @override
    def save(self, *args, **kwargs) -> None:
        self.email = str(self.email or "").strip().lower()
        self.full_name = str(self.full_name or "").strip()
        super().save(*args, **kwargs)


class MemberMembershipQuerySet(models.QuerySet["MemberMembership"]):
    def for_principal(self, principal: str) -> MemberMembershipQuerySet:
        return self.filter(user_email=str(principal or "").strip().lower())

    def active(self, *, at: datetime.datetime | None = None) -> MemberMembershipQuerySet:
        reference = timezone.now() if at is None else at
        return self.filter(start_date__lte=reference).filter(
            Q(end_date__isnull=True) | Q(end_date__gte=reference)
        )


class MemberMembership(models.Model):
    """Time-bounded grant of a membership type to a principal (by email).

    ``params`` optionally scopes batch privileges, either as
    ``{"batches": [2017, 2018]}`` or as ``{"from": 2015, "to": 2019}``.
    """

    user_email = models.EmailField()
    membership_type = models.CharField(max_length=64)
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(blank=True, null=True)
    params = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = MemberMembershipQuerySet.as_manager()

    class Meta:
        verbose_name = "Membership grant"
        verbose_name_plural = "Membership grants"
        ordering = ("start_date", "id")
        indexes = [
            models.Index(fields=["user_email", "start_date"], name="mm_email_start"),
            models.Index(fields=["membership_type"], name="mm_type"),
        ]

    def __str__(self) -> str:
        return f"{self.user_email} ({self.membership_type})"

    @override
    def save(self, *args, **kwargs) -> None:
        self.user_email = str(self.user_email or "").strip().lower()
        self.membership_type = str(self.membership_type or "").strip()
        super().save(*args, **kwargs)

    def is_active(self, at: datetime.datetime | None = None) -> bool:
        reference = timezone.now() if at is None else at
        if self.start_date > reference:
            return False
        return self.end_date is None or self.end_date >= reference


class MembershipPrivilege(models.Model):
    membership_type = models.CharField(max_length=64)
    privilege = models.CharField(max_length=64)
    view = models.BooleanField(default=False)
    edit = models.BooleanField(default=False)
    execute = models.BooleanField(default=False)

    class Meta:
        verbose_name = "Membership privilege"
        verbose_name_plural = "Membership privileges"
        ordering = ("id",)
        constraints = [
            models.UniqueConstraint(
                fields=["membership_type", "privilege"],
                name="uniq_membership_privilege_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.membership_type}: {self.privilege}"

    @override
    def save(self, *args, **kwargs) -> None:
        self.membership_type = str(self.membership_type or "").strip()
        self.privilege = str(self.privilege or "").strip().upper()
        super().save(*args, **kwargs)


class ApprovalAudit(models.Model):
    class Action(models.TextChoices):
        approve = "APPROVE", "Approve"
        reject = "REJECT", "Reject"

    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="approval_audits")
    approver_email = models.EmailField()
    # Grant that justified the decision; empty when the legacy graduation-year
    # comparison decided.
    membership_type = models.CharField(max_length=64, blank=True, default="")
    action = models.CharField(max_length=16, choices=Action.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Approval audit entry"
        verbose_name_plural = "Approval audit entries"
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["profile", "created_at"], name="audit_profile_at"),
            models.Index(fields=["approver_email", "created_at"], name="audit_approver_at"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.profile_id} by {self.approver_email}"


class LoginEvent(models.Model):
    """Sign-in, sign-out and sign-up events, keyed by user id and/or email."""

    class Action(models.TextChoices):
        sign_in = "sign_in", "Sign in"
        sign_out = "sign_out", "Sign out"
        sign_up = "sign_up", "Sign up"

    user_id = models.CharField(max_length=64, blank=True, default="")
    user_email = models.EmailField(blank=True, default="")
    action = models.CharField(max_length=16, choices=Action.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Login event"
        verbose_name_plural = "Login events"
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["user_id", "action", "created_at"], name="login_user_action_at"),
            models.Index(fields=["user_email", "action", "created_at"], name="login_email_action_at"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.user_id or self.user_email}"

    @override
    def save(self, *args, **kwargs) -> None:
        self.user_id = str(self.user_id or "").strip()
        self.user_email = str(self.user_email or "").strip().lower()
        super().save(*args, **kwargs)


class MemoirQuerySet(models.QuerySet["Memoir"]):
    def published(self) -> MemoirQuerySet:
        return self.filter(active=True, date_approved__isnull=False)

    def in_display_order(self) -> MemoirQuerySet:
        return self.order_by(
            models.F("priority_seq").asc(nulls_last=True),
            models.F("date_approved").desc(),
            "id",
        )


class Memoir(models.Model):
    """Testimonial written by an alumnus; shown once approved and active."""

    email = models.EmailField(blank=True, default="")
    name = models.CharField(max_length=255)
    batch = models.PositiveIntegerField(blank=True, null=True)
    branch = models.CharField(max_length=128, blank=True, default="")
    role_company = models.CharField(max_length=255, blank=True, default="")
    message = models.TextField()
    show_on_main_page = models.BooleanField(default=False)
    # Lower values are shown first; rows without a priority go last.
    priority_seq = models.IntegerField(blank=True, null=True)
    active = models.BooleanField(default=True)
    date_approved = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = MemoirQuerySet.as_manager()

    class Meta:
        ordering = ("priority_seq", "-date_approved", "id")
        indexes = [
            models.Index(fields=["active", "priority_seq"], name="memoir_active_priority"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.batch or '-'})"
