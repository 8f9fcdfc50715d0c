from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AccessToken",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("token_hash", models.CharField(max_length=64, unique=True)),
                ("target_id", models.BigIntegerField(db_index=True)),
                ("issued_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField()),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("max_uses", models.PositiveIntegerField(default=0)),
                ("use_count", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "access_tokens",
                "ordering": ["-created_at"],
            },
        ),
    ]
