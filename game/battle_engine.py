#battle_engine.py
import math
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from .balance import (
    COMBAT_INTERVAL_SECONDS,
    COMBAT_LOG_SIZE,
    DEFEND_DAMAGE_FACTOR,
    ENEMY_ATTACK_CHANCE,
    ENEMY_CRIT_CHANCE,
    ENEMY_CRIT_MULTIPLIER,
    EVADE_SUCCESS_CHANCE,
    HERO_ATTACK_CHANCE,
    HERO_CRIT_CHANCE,
    HERO_CRIT_MULTIPLIER,
    HERO_DEFEND_CHANCE,
    RECOVERY_SECONDS,
)
from .exceptions import PreconditionFailed
from .formulas import compute_damage, generate_enemy


@dataclass
class Enemy:
    """
    An idle-combat enemy. Lives only for the current encounter.
    """
    name: str
    level: int
    enemy_type: str
    max_health: int
    current_health: int
    attack: int
    defense: int
    rewards: dict
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def spawn(cls, hero_level, rng):
        data = generate_enemy(hero_level, rng)
        return cls(
            name=data["name"],
            level=data["level"],
            enemy_type=data["type"],
            max_health=data["health"],
            current_health=data["health"],
            attack=data["attack"],
            defense=data["defense"],
            rewards=data["rewards"],
        )

    @property
    def alive(self):
        return self.current_health > 0

    def take_damage(self, dmg):
        self.current_health = max(0, self.current_health - dmg)
        return dmg


@dataclass
class CombatLogEntry:
    kind: str  # damage, victory, defeat, heal, levelup
    message: str
    timestamp: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class RoundResult:
    hero_action: str
    damage_dealt: int = 0
    critical: bool = False
    enemy_action: Optional[str] = None
    damage_taken: int = 0
    enemy_critical: bool = False
    evaded: bool = False
    enemy_defeated: bool = False
    hero_defeated: bool = False
    rewards: Optional[dict] = None
    levels_gained: int = 0


class IdleCombat:
    """
    One hero's idle-combat session: the active flag, the current enemy, the
    recovery state after a defeat and the bounded combat log.

    ``process_round`` resolves exactly one round. Random draws happen in this
    order: hero action, [hero damage, hero crit], [enemy action,
    [enemy damage, [evade roll] | [enemy crit]]].
    """

    def __init__(self, log_size=COMBAT_LOG_SIZE):
        self.active = False
        self.recovering = False
        self.enemy = None
        self.log = deque(maxlen=log_size)

    def add_log(self, kind, message, now=None):
        entry = CombatLogEntry(kind=kind, message=message, timestamp=now if now is not None else time.time())
        self.log.append(entry)
        return entry

    # ---- Start / stop ----

    def start(self, hero, rng, now=None):
        if self.active:
            raise PreconditionFailed("Hero is already in idle combat.")
        if self.recovering:
            raise PreconditionFailed(
                "Hero is recovering from a defeat.", {"recovery_seconds": RECOVERY_SECONDS}
            )
        if not hero.is_alive:
            raise PreconditionFailed("Hero has no health left.")

        if self.enemy is None:
            self.enemy = Enemy.spawn(hero.level, rng)
        self.active = True
        self.add_log("damage", f"Started combat with {self.enemy.name}!", now)
        return self.enemy

    def stop(self, now=None) -> bool:
        if not self.active:
            return False
        self.active = False
        self.enemy = None
        self.add_log("damage", "Stopped idle combat.", now)
        return True

    # ---- One round ----

    def process_round(self, hero, rng, now=None, interval=COMBAT_INTERVAL_SECONDS):
        if not self.active:
            return None
        if self.enemy is None:
            self.enemy = Enemy.spawn(hero.level, rng)

        enemy = self.enemy
        hero.idle_stats.total_idle_seconds += interval

        # Hero's turn
        roll = rng.random()
        if roll < HERO_ATTACK_CHANCE:
            result = RoundResult(hero_action="attack")
            damage = compute_damage(hero.attack, enemy.defense, rng)
            if rng.random() < HERO_CRIT_CHANCE:
                damage = math.floor(damage * HERO_CRIT_MULTIPLIER)
                result.critical = True
                self.add_log("damage", f"CRITICAL HIT! You deal {damage} damage to {enemy.name}!", now)
            else:
                self.add_log("damage", f"You attack {enemy.name} for {damage} damage!", now)
            result.damage_dealt = enemy.take_damage(damage)
        elif roll < HERO_ATTACK_CHANCE + HERO_DEFEND_CHANCE:
            result = RoundResult(hero_action="defend")
            self.add_log("damage", "You raise your guard and prepare to defend!", now)
        else:
            result = RoundResult(hero_action="evade")
            self.add_log("damage", "You attempt to evade the next attack!", now)

        if enemy.alive:
            self._enemy_turn(hero, enemy, result, rng, now)
            if not hero.is_alive:
                result.hero_defeated = True
                self.active = False
                self.recovering = True
                self.enemy = None
                self.add_log(
                    "defeat",
                    f"Defeated by {enemy.name}! Recovering in {RECOVERY_SECONDS} seconds...",
                    now,
                )
        else:
            self._victory(hero, enemy, result, rng, now)
        return result

    def _enemy_turn(self, hero, enemy, result, rng, now):
        if rng.random() >= ENEMY_ATTACK_CHANCE:
            result.enemy_action = "prepare"
            self.add_log("damage", f"{enemy.name} prepares to defend!", now)
            return

        result.enemy_action = "attack"
        damage = compute_damage(enemy.attack, hero.defense, rng)
        if result.hero_action == "evade" and rng.random() < EVADE_SUCCESS_CHANCE:
            damage = 0
            result.evaded = True
            self.add_log("damage", f"You successfully evade {enemy.name}'s attack!", now)
        elif result.hero_action == "defend":
            damage = math.floor(damage * DEFEND_DAMAGE_FACTOR)
            self.add_log("damage", f"You block some damage! {enemy.name} deals {damage} damage!", now)
        elif rng.random() < ENEMY_CRIT_CHANCE:
            damage = math.floor(damage * ENEMY_CRIT_MULTIPLIER)
            result.enemy_critical = True
            self.add_log("damage", f"{enemy.name} lands a critical hit for {damage} damage!", now)
        else:
            self.add_log("damage", f"{enemy.name} attacks you for {damage} damage!", now)

        if damage > 0:
            hero.take_damage(damage, now)
        result.damage_taken = damage

    def _victory(self, hero, enemy, result, rng, now):
        rewards = enemy.rewards
        result.enemy_defeated = True
        result.rewards = rewards

        result.levels_gained = hero.gain_experience(rewards["experience"], now)
        hero.gain_gold(rewards["gold"], now)
        if rewards.get("materials"):
            hero.add_materials(rewards["materials"], now)
        hero.idle_stats.record_victory(rewards)

        self.add_log(
            "victory",
            f"Victory! Defeated {enemy.name}! Gained {rewards['experience']} EXP and {rewards['gold']} gold!",
            now,
        )
        if rewards.get("materials"):
            listing = ", ".join(f"{qty} {kind}" for kind, qty in rewards["materials"].items())
            self.add_log("victory", f"Materials gained: {listing}", now)
        if result.levels_gained:
            self.add_log("levelup", f"Level up! You are now level {hero.level}.", now)

        self.enemy = Enemy.spawn(hero.level, rng)

    # ---- Recovery / rewards ----

    def recover(self, hero, now=None):
        hero.heal(now=now)
        self.recovering = False
        self.add_log("heal", "You have fully recovered and are ready for combat!", now)

    def collect_rewards(self, hero, now=None):
        """Zero the pending accumulator. A no-op (no log entry) when nothing is pending."""
        if not hero.idle_stats.has_pending():
            return {"gold": 0, "experience": 0, "materials": {}}
        pending = hero.idle_stats.take_pending()
        self.add_log(
            "victory",
            f"Collected idle rewards: {pending['gold']} gold, {pending['experience']} EXP!",
            now,
        )
        return pending
