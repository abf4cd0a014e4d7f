from datetime import datetime, timezone as dt_timezone

from django.db import models
from django.utils import timezone

from .balance import STARTING_ARENA_RANK, STARTING_GOLD
from .hero import Hero


# ==========================
# Clases de héroe
# ==========================

class HeroClass(models.TextChoices):
    WARRIOR = "Warrior", "Warrior"
    GUARDIAN = "Guardian", "Guardian"
    MAGE = "Mage", "Mage"


def _to_datetime(ts):
    return datetime.fromtimestamp(ts, tz=dt_timezone.utc)


class HeroRecord(models.Model):
    """
    Persistent row for one hero. Scalar stats are columns; inventory,
    equipment, materials, crafting queue and idle stats are JSON.
    """
    id = models.CharField(primary_key=True, max_length=32, editable=False)
    name = models.CharField(max_length=20)
    hero_class = models.CharField(max_length=16, choices=HeroClass.choices)

    level = models.PositiveIntegerField(default=1)
    experience = models.PositiveIntegerField(default=0)
    experience_to_next = models.PositiveIntegerField(default=100)
    skill_points = models.PositiveIntegerField(default=0)

    # Stats base (sin equipo)
    base_attack = models.IntegerField()
    base_defense = models.IntegerField()
    base_max_health = models.IntegerField()
    current_health = models.IntegerField()

    gold = models.PositiveIntegerField(default=STARTING_GOLD)
    honor_points = models.PositiveIntegerField(default=0)
    arena_rank = models.PositiveIntegerField(default=STARTING_ARENA_RANK, db_index=True)

    inventory = models.JSONField(default=list, blank=True)
    equipped = models.JSONField(default=dict, blank=True)
    materials = models.JSONField(default=dict, blank=True)
    crafting_queue = models.JSONField(default=list, blank=True)
    idle_stats = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    last_active = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["arena_rank"]

    def __str__(self):
        return f"{self.name} ({self.get_hero_class_display()} lvl {self.level})"

    def to_hero(self) -> Hero:
        return Hero.from_dict({
            "id": self.id,
            "name": self.name,
            "hero_class": self.hero_class,
            "level": self.level,
            "experience": self.experience,
            "experience_to_next": self.experience_to_next,
            "skill_points": self.skill_points,
            "base_attack": self.base_attack,
            "base_defense": self.base_defense,
            "base_max_health": self.base_max_health,
            "current_health": self.current_health,
            "gold": self.gold,
            "honor_points": self.honor_points,
            "arena_rank": self.arena_rank,
            "inventory": self.inventory,
            "equipped": self.equipped,
            "materials": self.materials,
            "crafting_queue": self.crafting_queue,
            "idle_stats": self.idle_stats,
            "created_at": self.created_at.timestamp(),
            "last_active": self.last_active.timestamp(),
        })

    def apply_hero(self, hero: Hero):
        data = hero.to_dict()
        for field_name in (
            "name", "hero_class", "level", "experience", "experience_to_next",
            "skill_points", "base_attack", "base_defense", "base_max_health",
            "current_health", "gold", "honor_points", "arena_rank", "inventory",
            "equipped", "materials", "crafting_queue", "idle_stats",
        ):
            setattr(self, field_name, data[field_name])
        self.created_at = _to_datetime(hero.created_at)
        self.last_active = _to_datetime(hero.last_active)

    @classmethod
    def from_hero(cls, hero: Hero):
        record = cls(id=hero.id)
        record.apply_hero(hero)
        return record


class ArenaBattleRecord(models.Model):
    """History of resolved arena battles."""
    hero = models.ForeignKey(HeroRecord, on_delete=models.CASCADE, related_name="arena_battles")
    opponent_name = models.CharField(max_length=64)
    opponent_rank = models.PositiveIntegerField()
    opponent_level = models.PositiveIntegerField()
    player_power = models.FloatField()
    opponent_power = models.FloatField()
    victory = models.BooleanField()
    honor_gained = models.IntegerField()
    rank_change = models.IntegerField()
    experience_gained = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        outcome = "win" if self.victory else "loss"
        return f"{self.hero_id} vs {self.opponent_name} ({outcome})"
