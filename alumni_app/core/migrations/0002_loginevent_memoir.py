from __future__ import annotations

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LoginEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(blank=True, default="", max_length=64)),
                ("user_email", models.EmailField(blank=True, default="", max_length=254)),
                (
                    "action",
                    models.CharField(
                        choices=[("sign_in", "Sign in"), ("sign_out", "Sign out"), ("sign_up", "Sign up")],
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Login event",
                "verbose_name_plural": "Login events",
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["user_id", "action", "created_at"], name="login_user_action_at"),
                    models.Index(fields=["user_email", "action", "created_at"], name="login_email_action_at"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Memoir",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("name", models.CharField(max_length=255)),
                ("batch", models.PositiveIntegerField(blank=True, null=True)),
                ("branch", models.CharField(blank=True, default="", max_length=128)),
                ("role_company", models.CharField(blank=True, default="", max_length=255)),
                ("message", models.TextField()),
                ("show_on_main_page", models.BooleanField(default=False)),
                ("priority_seq", models.IntegerField(blank=True, null=True)),
                ("active", models.BooleanField(default=True)),
                ("date_approved", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ("priority_seq", "-date_approved", "id"),
                "indexes": [
                    models.Index(fields=["active", "priority_seq"], name="memoir_active_priority"),
                ],
            },
        ),
    ]
