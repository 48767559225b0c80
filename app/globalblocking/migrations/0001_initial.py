import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BlockRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "target_central_id",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Central id of the blocked account, or 0 for address blocks.",
                    ),
                ),
                (
                    "target",
                    models.CharField(
                        help_text="Account name, single address or sanitized CIDR range.",
                        max_length=255,
                    ),
                ),
                ("blocker_central_id", models.PositiveBigIntegerField(default=0)),
                ("blocker_wiki", models.CharField(max_length=64)),
                ("reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True, help_text="Empty means the block never expires.", null=True
                    ),
                ),
                ("anonymous_only", models.BooleanField(default=False)),
                ("disables_account_creation", models.BooleanField(default=False)),
                ("range_start", models.CharField(blank=True, default="", max_length=35)),
                ("range_end", models.CharField(blank=True, default="", max_length=35)),
            ],
            options={
                "ordering": ["-id"],
                "permissions": [
                    ("globalblock_exempt", "Exempt from global address blocks"),
                    ("ipblock_exempt", "Exempt from all address blocks"),
                ],
                "indexes": [
                    models.Index(
                        fields=["range_start", "range_end"], name="globalblock_range_idx"
                    ),
                    models.Index(
                        fields=["target_central_id"], name="globalblock_target_idx"
                    ),
                    models.Index(fields=["expires_at"], name="globalblock_expiry_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LocalOverride",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("wiki", models.CharField(max_length=64)),
                ("overridden_by", models.CharField(max_length=255)),
                ("reason", models.TextField(blank=True, default="")),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True, help_text="Empty means the override never expires.", null=True
                    ),
                ),
                ("enabled", models.BooleanField(default=True)),
                (
                    "block",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="local_overrides",
                        to="globalblocking.blockrecord",
                    ),
                ),
            ],
            options={
                "unique_together": {("block", "wiki")},
            },
        ),
    ]
