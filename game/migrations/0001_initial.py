import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="HeroRecord",
            fields=[
                ("id", models.CharField(editable=False, max_length=32, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=20)),
                ("hero_class", models.CharField(choices=[("Warrior", "Warrior"), ("Guardian", "Guardian"), ("Mage", "Mage")], max_length=16)),
                ("level", models.PositiveIntegerField(default=1)),
                ("experience", models.PositiveIntegerField(default=0)),
                ("experience_to_next", models.PositiveIntegerField(default=100)),
                ("skill_points", models.PositiveIntegerField(default=0)),
                ("base_attack", models.IntegerField()),
                ("base_defense", models.IntegerField()),
                ("base_max_health", models.IntegerField()),
                ("current_health", models.IntegerField()),
                ("gold", models.PositiveIntegerField(default=100)),
                ("honor_points", models.PositiveIntegerField(default=0)),
                ("arena_rank", models.PositiveIntegerField(db_index=True, default=5000)),
                ("inventory", models.JSONField(blank=True, default=list)),
                ("equipped", models.JSONField(blank=True, default=dict)),
                ("materials", models.JSONField(blank=True, default=dict)),
                ("crafting_queue", models.JSONField(blank=True, default=list)),
                ("idle_stats", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("last_active", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["arena_rank"],
            },
        ),
        migrations.CreateModel(
            name="ArenaBattleRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("opponent_name", models.CharField(max_length=64)),
                ("opponent_rank", models.PositiveIntegerField()),
                ("opponent_level", models.PositiveIntegerField()),
                ("player_power", models.FloatField()),
                ("opponent_power", models.FloatField()),
                ("victory", models.BooleanField()),
                ("honor_gained", models.IntegerField()),
                ("rank_change", models.IntegerField()),
                ("experience_gained", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("hero", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="arena_battles", to="game.herorecord")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
