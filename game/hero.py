"""
Hero progression state: the hero, its equipment and crafting queue, and the
atomic mutations every other component goes through.

Base stats are stored apart from equipment bonuses; ``attack``, ``defense``
and ``max_health`` are always base + the sum of equipped items, so swapping
gear can never double count or lose a bonus.
"""
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from .balance import (
    EQUIPMENT_SLOTS,
    HERO_CLASSES,
    HERO_NAME_MAX_LENGTH,
    RARITIES,
    STARTER_MATERIALS,
    STARTING_ARENA_RANK,
    STARTING_GOLD,
    class_base_stats,
    exp_to_next_level,
)
from .exceptions import InsufficientResource, InvalidArgument, NotFound
from .formulas import level_up


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Equipment:
    name: str
    slot: str
    rarity: str = "Common"
    attack: int = 0
    defense: int = 0
    health: int = 0
    enhance_level: int = 0
    id: str = field(default_factory=new_id)
    acquired_at: float = field(default_factory=time.time)

    @classmethod
    def create(cls, name, slot, rarity, stats, now=None):
        if slot not in EQUIPMENT_SLOTS:
            raise InvalidArgument(f"Unknown equipment slot '{slot}'.")
        if rarity not in RARITIES:
            raise InvalidArgument(f"Unknown rarity '{rarity}'.")
        return cls(
            name=name,
            slot=slot,
            rarity=rarity,
            attack=stats.get("attack", 0),
            defense=stats.get("defense", 0),
            health=stats.get("health", 0),
            acquired_at=now if now is not None else time.time(),
        )

    @classmethod
    def from_dict(cls, data):
        return cls(**data)


@dataclass
class CraftingItem:
    recipe_id: str
    item_name: str
    started_at: float
    completes_at: float
    id: str = field(default_factory=new_id)

    def seconds_remaining(self, now) -> float:
        return max(0.0, self.completes_at - now)

    def is_ready(self, now) -> bool:
        return self.completes_at <= now

    @classmethod
    def from_dict(cls, data):
        return cls(**data)


@dataclass
class IdleStats:
    enemies_defeated: int = 0
    total_idle_seconds: int = 0
    total_experience: int = 0
    total_gold: int = 0
    pending_gold: int = 0
    pending_experience: int = 0
    pending_materials: Dict[str, int] = field(default_factory=dict)

    def has_pending(self) -> bool:
        return bool(self.pending_gold or self.pending_experience or any(self.pending_materials.values()))

    def record_victory(self, rewards):
        self.enemies_defeated += 1
        self.total_experience += rewards["experience"]
        self.total_gold += rewards["gold"]
        self.pending_experience += rewards["experience"]
        self.pending_gold += rewards["gold"]
        for kind, qty in rewards.get("materials", {}).items():
            self.pending_materials[kind] = self.pending_materials.get(kind, 0) + qty

    def take_pending(self):
        """Return and zero the pending accumulator."""
        pending = {
            "gold": self.pending_gold,
            "experience": self.pending_experience,
            "materials": dict(self.pending_materials),
        }
        self.pending_gold = 0
        self.pending_experience = 0
        self.pending_materials = {}
        return pending

    @classmethod
    def from_dict(cls, data):
        return cls(**(data or {}))


@dataclass
class Hero:
    name: str
    hero_class: str
    base_attack: int
    base_defense: int
    base_max_health: int
    current_health: int
    level: int = 1
    experience: int = 0
    experience_to_next: int = 100
    skill_points: int = 0
    gold: int = STARTING_GOLD
    honor_points: int = 0
    arena_rank: int = STARTING_ARENA_RANK
    inventory: List[Equipment] = field(default_factory=list)
    equipped: Dict[str, Equipment] = field(default_factory=dict)
    materials: Dict[str, int] = field(default_factory=dict)
    crafting_queue: List[CraftingItem] = field(default_factory=list)
    idle_stats: IdleStats = field(default_factory=IdleStats)
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)

    # ---- Derived stats ----

    def equipment_bonus(self):
        bonus = {"attack": 0, "defense": 0, "health": 0}
        for item in self.equipped.values():
            bonus["attack"] += item.attack
            bonus["defense"] += item.defense
            bonus["health"] += item.health
        return bonus

    @property
    def attack(self) -> int:
        return self.base_attack + self.equipment_bonus()["attack"]

    @property
    def defense(self) -> int:
        return self.base_defense + self.equipment_bonus()["defense"]

    @property
    def max_health(self) -> int:
        return self.base_max_health + self.equipment_bonus()["health"]

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    def touch(self, now=None):
        self.last_active = now if now is not None else time.time()

    # ---- Experience / currencies ----

    def gain_experience(self, amount: int, now=None) -> int:
        """Returns how many levels were gained."""
        before = self.level
        level_up(self, amount)
        self.touch(now)
        return self.level - before

    def gain_gold(self, amount: int, now=None):
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self.gold += amount
        self.touch(now)

    def spend_gold(self, amount: int, now=None) -> bool:
        if amount < 0 or self.gold < amount:
            return False
        self.gold -= amount
        self.touch(now)
        return True

    def require_gold(self, amount: int):
        if self.gold < amount:
            raise InsufficientResource("gold", amount, self.gold)

    def gain_honor(self, amount: int, now=None):
        self.honor_points = max(0, self.honor_points + amount)
        self.touch(now)

    def spend_honor(self, amount: int, now=None) -> bool:
        if amount < 0 or self.honor_points < amount:
            return False
        self.honor_points -= amount
        self.touch(now)
        return True

    def require_honor(self, amount: int):
        if self.honor_points < amount:
            raise InsufficientResource("honor", amount, self.honor_points)

    # ---- Health ----

    def take_damage(self, amount: int, now=None):
        self.current_health = max(0, self.current_health - max(0, amount))
        self.touch(now)

    def heal(self, amount: Optional[int] = None, now=None):
        if amount is None:
            self.current_health = self.max_health
        else:
            self.current_health = min(self.max_health, self.current_health + max(0, amount))
        self.touch(now)

    def _clamp_health(self):
        self.current_health = max(0, min(self.current_health, self.max_health))

    # ---- Materials ----

    def add_materials(self, materials, now=None):
        for kind, qty in materials.items():
            if qty > 0:
                self.materials[kind] = self.materials.get(kind, 0) + qty
        self.touch(now)

    def has_materials(self, requirements) -> bool:
        return all(self.materials.get(kind, 0) >= qty for kind, qty in requirements.items())

    def require_materials(self, requirements):
        for kind, qty in requirements.items():
            available = self.materials.get(kind, 0)
            if available < qty:
                raise InsufficientResource(kind, qty, available)

    def spend_materials(self, requirements, now=None):
        self.require_materials(requirements)
        for kind, qty in requirements.items():
            self.materials[kind] -= qty
        self.touch(now)

    # ---- Equipment ----

    def find_equipment(self, equipment_id: str):
        """Returns ``(item, slot)``; slot is None for inventory items."""
        for item in self.inventory:
            if item.id == equipment_id:
                return item, None
        for slot, item in self.equipped.items():
            if item.id == equipment_id:
                return item, slot
        raise NotFound("Equipment not found.", {"equipment_id": equipment_id})

    def add_equipment(self, item: Equipment, now=None):
        self.inventory.append(item)
        self.touch(now)

    def equip(self, equipment_id: str, now=None):
        """Move an inventory item into its slot. Returns ``(equipped, unequipped)``."""
        item = next((eq for eq in self.inventory if eq.id == equipment_id), None)
        if item is None:
            raise NotFound("Equipment not found in inventory.", {"equipment_id": equipment_id})

        previous = self.equipped.get(item.slot)
        self.inventory = [eq for eq in self.inventory if eq.id != equipment_id]
        if previous is not None:
            self.inventory.append(previous)
        self.equipped[item.slot] = item
        self._clamp_health()
        self.touch(now)
        return item, previous

    def unequip(self, slot: str, now=None) -> Equipment:
        if slot not in EQUIPMENT_SLOTS:
            raise InvalidArgument(f"Unknown equipment slot '{slot}'.")
        item = self.equipped.get(slot)
        if item is None:
            raise NotFound(f"Nothing equipped in slot '{slot}'.", {"slot": slot})
        del self.equipped[slot]
        self.inventory.append(item)
        self._clamp_health()
        self.touch(now)
        return item

    # ---- Crafting queue ----

    def find_crafting(self, crafting_id: str) -> CraftingItem:
        for job in self.crafting_queue:
            if job.id == crafting_id:
                return job
        raise NotFound("Crafting item not found.", {"crafting_id": crafting_id})

    # ---- Persistence helpers ----

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        data = dict(data)
        data["inventory"] = [Equipment.from_dict(eq) for eq in data.get("inventory", [])]
        data["equipped"] = {slot: Equipment.from_dict(eq) for slot, eq in data.get("equipped", {}).items()}
        data["crafting_queue"] = [CraftingItem.from_dict(job) for job in data.get("crafting_queue", [])]
        data["idle_stats"] = IdleStats.from_dict(data.get("idle_stats"))
        return cls(**data)


def create_hero(name: str, hero_class: str, now=None) -> Hero:
    name = (name or "").strip()
    if not 1 <= len(name) <= HERO_NAME_MAX_LENGTH:
        raise InvalidArgument(
            f"Hero name must be between 1 and {HERO_NAME_MAX_LENGTH} characters.",
            {"name": name},
        )
    if hero_class not in HERO_CLASSES:
        raise InvalidArgument(
            "Invalid hero class.",
            {"hero_class": hero_class, "choices": sorted(HERO_CLASSES)},
        )

    stats = class_base_stats(hero_class)
    now = now if now is not None else time.time()
    return Hero(
        name=name,
        hero_class=hero_class,
        base_attack=stats["attack"],
        base_defense=stats["defense"],
        base_max_health=stats["health"],
        current_health=stats["health"],
        experience_to_next=exp_to_next_level(1),
        materials=dict(STARTER_MATERIALS),
        created_at=now,
        last_active=now,
    )
