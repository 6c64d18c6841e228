from __future__ import annotations

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("full_name", models.CharField(blank=True, default="", max_length=255)),
                ("graduation_year", models.PositiveIntegerField(blank=True, db_index=True, null=True)),
                ("degree", models.CharField(blank=True, default="", max_length=64)),
                ("branch", models.CharField(blank=True, default="", max_length=128)),
                ("company", models.CharField(blank=True, default="", max_length=255)),
                ("designation", models.CharField(blank=True, default="", max_length=255)),
                ("city", models.CharField(blank=True, default="", max_length=128)),
                ("country", models.CharField(blank=True, default="", max_length=128)),
                ("avatar_url", models.CharField(blank=True, default="", max_length=2048)),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                        db_index=True,
                        default="PENDING",
                        max_length=16,
                    ),
                ),
                ("is_approved", models.BooleanField(default=False)),
                ("approved_by_email", models.EmailField(blank=True, default="", max_length=254)),
                ("approved_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("created_at", "id"),
                "indexes": [
                    models.Index(fields=["status", "graduation_year"], name="profile_status_year"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MemberMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_email", models.EmailField(max_length=254)),
                ("membership_type", models.CharField(max_length=64)),
                ("start_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("end_date", models.DateTimeField(blank=True, null=True)),
                ("params", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Membership grant",
                "verbose_name_plural": "Membership grants",
                "ordering": ("start_date", "id"),
                "indexes": [
                    models.Index(fields=["user_email", "start_date"], name="mm_email_start"),
                    models.Index(fields=["membership_type"], name="mm_type"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MembershipPrivilege",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("membership_type", models.CharField(max_length=64)),
                ("privilege", models.CharField(max_length=64)),
                ("view", models.BooleanField(default=False)),
                ("edit", models.BooleanField(default=False)),
                ("execute", models.BooleanField(default=False)),
            ],
            options={
                "verbose_name": "Membership privilege",
                "verbose_name_plural": "Membership privileges",
                "ordering": ("id",),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("membership_type", "privilege"),
                        name="uniq_membership_privilege_type",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApprovalAudit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("approver_email", models.EmailField(max_length=254)),
                ("membership_type", models.CharField(blank=True, default="", max_length=64)),
                (
                    "action",
                    models.CharField(choices=[("APPROVE", "Approve"), ("REJECT", "Reject")], max_length=16),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="approval_audits",
                        to="core.profile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Approval audit entry",
                "verbose_name_plural": "Approval audit entries",
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["profile", "created_at"], name="audit_profile_at"),
                    models.Index(fields=["approver_email", "created_at"], name="audit_approver_at"),
                ],
            },
        ),
    ]
