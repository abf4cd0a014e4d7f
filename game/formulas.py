"""
Pure game formulas: experience curve, damage, power, enemy generation,
offline and arena rewards, enhancement/skip/sell prices.

The only source of randomness is ``rng.random()`` (uniform in [0, 1)) on the
object passed in, so tests can feed a scripted sequence. Anything with a
``random()`` method works; by default the module-level ``random`` is used.
"""
import math
import random

from .balance import (
    AD_BONUS_MULTIPLIER,
    ARENA_MAX_RANK_LOSS,
    DAMAGE_RANDOMNESS,
    ENEMY_ARCHETYPES,
    ENEMY_BASE_STATS,
    ENEMY_DROP_CHANCE,
    ENEMY_DROP_MATERIALS,
    ENEMY_LEVEL_GROWTH,
    ENEMY_LEVEL_VARIANCE,
    ENEMY_REWARD_EXPERIENCE,
    ENEMY_REWARD_GOLD,
    ENHANCE_COST_PER_LEVEL,
    ENHANCE_MAX_LEVEL,
    LEVEL_GAINS,
    MAX_OFFLINE_SECONDS,
    OFFLINE_EFFICIENCY_DECAY,
    OFFLINE_EXP_PER_HOUR,
    OFFLINE_FULL_EFFICIENCY_HOURS,
    OFFLINE_GOLD_PER_HOUR,
    OFFLINE_MATERIAL_CHANCE_PER_HOUR,
    OFFLINE_MATERIAL_MAX_CHANCE,
    OFFLINE_MATERIALS,
    OFFLINE_MIN_EFFICIENCY,
    RARITY_BASE_VALUE,
    RARITY_SELL_MULTIPLIER,
    SKIP_COST_PER_SECOND,
    exp_to_next_level,
)
from .exceptions import PreconditionFailed

__all__ = [
    "roll_int",
    "pick",
    "exp_to_next_level",
    "total_exp_for_level",
    "level_up",
    "compute_damage",
    "power_rating",
    "win_probability",
    "generate_enemy",
    "offline_effective_hours",
    "offline_rewards",
    "apply_bonus",
    "arena_rewards",
    "enhancement_cost",
    "skip_cost",
    "sell_value",
    "validate_game_state",
]


# ====================================================
# Random helpers (one draw each)
# ====================================================

def roll_int(rng, low: int, high: int) -> int:
    """Uniform integer in [low, high] from a single ``rng.random()``."""
    span = high - low + 1
    return low + min(span - 1, int(rng.random() * span))


def pick(rng, options):
    return options[min(len(options) - 1, int(rng.random() * len(options)))]


# ====================================================
# Experience
# ====================================================

def total_exp_for_level(level: int) -> int:
    """Experience needed to go from level 1 to ``level``."""
    return sum(exp_to_next_level(lvl) for lvl in range(1, level))


def level_up(hero, exp_gained: int):
    """
    Add ``exp_gained`` to the hero and consume as many level thresholds as it
    covers. Each level grants a skill point and the fixed stat gains; any
    level gained fully heals the hero. Returns the hero.
    """
    if exp_gained < 0:
        raise ValueError("exp_gained must be non-negative")

    hero.experience += exp_gained
    levels = 0
    while hero.experience >= hero.experience_to_next:
        hero.experience -= hero.experience_to_next
        hero.level += 1
        hero.skill_points += 1
        hero.experience_to_next = exp_to_next_level(hero.level)
        levels += 1

    if levels:
        hero.base_attack += LEVEL_GAINS["attack"] * levels
        hero.base_defense += LEVEL_GAINS["defense"] * levels
        hero.base_max_health += LEVEL_GAINS["health"] * levels
        hero.current_health = hero.max_health
    return hero


# ====================================================
# Combat
# ====================================================

def compute_damage(attacker_attack, defender_defense, rng=random, randomness_factor=DAMAGE_RANDOMNESS) -> int:
    base = max(1, attacker_attack - defender_defense / 2)
    variance = base * randomness_factor
    damage = base + (rng.random() - 0.5) * variance
    return math.floor(max(1, damage))


def power_rating(attack, defense, health) -> float:
    return attack * 2 + defense * 1.5 + health * 0.1


def win_probability(player_power, enemy_power) -> float:
    total = player_power + enemy_power
    if total <= 0:
        return 0.5
    return max(0.1, min(0.9, player_power / total))


def generate_enemy(hero_level: int, rng=random):
    """
    Roll an idle-combat enemy near ``hero_level``.

    Draw order: archetype, level variance, drop chance, drop kind (only when
    the drop succeeds). Rewards are the flat idle-loop rewards.
    """
    archetype = pick(rng, ENEMY_ARCHETYPES)
    level = max(1, hero_level + roll_int(rng, -ENEMY_LEVEL_VARIANCE, ENEMY_LEVEL_VARIANCE))
    multiplier = archetype["multiplier"]

    stats = {
        stat: math.floor((ENEMY_BASE_STATS[stat] + ENEMY_LEVEL_GROWTH[stat] * level) * multiplier)
        for stat in ("health", "attack", "defense")
    }

    materials = {}
    if rng.random() < ENEMY_DROP_CHANCE:
        materials[pick(rng, ENEMY_DROP_MATERIALS)] = 1

    return {
        "name": f"{archetype['name']} (Lv.{level})",
        "level": level,
        "type": archetype["type"],
        "health": stats["health"],
        "attack": stats["attack"],
        "defense": stats["defense"],
        "rewards": {
            "experience": ENEMY_REWARD_EXPERIENCE,
            "gold": ENEMY_REWARD_GOLD,
            "materials": materials,
        },
    }


# ====================================================
# Offline rewards
# ====================================================

def offline_effective_hours(hours: float) -> float:
    """
    Hours of full-rate production in an absence of ``hours``.

    The first hours run at 100%; after that each further hour yields 0.1 less
    than the previous, never below the minimum efficiency.
    """
    if hours <= OFFLINE_FULL_EFFICIENCY_HOURS:
        return max(0.0, hours)

    decay_window = (1 - OFFLINE_MIN_EFFICIENCY) / OFFLINE_EFFICIENCY_DECAY
    extra = hours - OFFLINE_FULL_EFFICIENCY_HOURS
    sloped = min(extra, decay_window)
    effective = OFFLINE_FULL_EFFICIENCY_HOURS + sloped - OFFLINE_EFFICIENCY_DECAY * sloped ** 2 / 2
    if extra > decay_window:
        effective += OFFLINE_MIN_EFFICIENCY * (extra - decay_window)
    return effective


def offline_rewards(offline_seconds: float, hero_level: int, rng=random):
    capped = max(0, min(offline_seconds, MAX_OFFLINE_SECONDS))
    hours = capped / 3600
    effective = offline_effective_hours(hours)

    gold_per_hour = OFFLINE_GOLD_PER_HOUR[0] + OFFLINE_GOLD_PER_HOUR[1] * hero_level
    exp_per_hour = OFFLINE_EXP_PER_HOUR[0] + OFFLINE_EXP_PER_HOUR[1] * hero_level

    materials = {}
    for kind, (base_chance, per_hour) in OFFLINE_MATERIALS.items():
        chance = min(OFFLINE_MATERIAL_MAX_CHANCE, base_chance + hours * OFFLINE_MATERIAL_CHANCE_PER_HOUR)
        if rng.random() < chance:
            materials[kind] = math.floor(rng.random() * max(1, hours * per_hour)) + 1

    return {
        "offline_seconds": int(capped),
        "gold": math.floor(gold_per_hour * effective),
        "experience": math.floor(exp_per_hour * effective),
        "materials": materials,
        "efficiency": round(effective / hours, 3) if hours else 1.0,
    }


def apply_bonus(rewards, use_bonus: bool):
    """Scale claimed offline rewards by the ad bonus (or 1.0)."""
    multiplier = AD_BONUS_MULTIPLIER if use_bonus else 1.0
    return {
        "gold": math.floor(rewards["gold"] * multiplier),
        "experience": math.floor(rewards["experience"] * multiplier),
        "materials": {kind: math.floor(qty * multiplier) for kind, qty in rewards.get("materials", {}).items()},
    }


# ====================================================
# Arena
# ====================================================

def arena_rewards(victory: bool, player_rank: int, opponent_rank: int, player_level: int):
    """
    Honor, rank and experience for one arena battle.

    ``rank_change`` is positive when the hero climbs (rank number goes down).
    Beating a better-ranked opponent pays more and climbs further, but never
    past the opponent's rank.
    """
    advantage = player_rank - opponent_rank

    if victory:
        honor = max(5, 15 + advantage // 100)
        climb = max(1, advantage // 50)
        if advantage > 0:
            climb = min(climb, advantage)
        rank_change = climb
        experience = 50 + player_level * 3
    else:
        honor = min(0, max(-10, -5 + advantage // 200))
        rank_change = -min(ARENA_MAX_RANK_LOSS, max(1, -advantage // 100))
        experience = 20 + player_level

    return {
        "honor_gained": honor,
        "rank_change": rank_change,
        "experience_gained": experience,
    }


# ====================================================
# Equipment prices
# ====================================================

def enhancement_cost(current_level: int) -> int:
    if current_level >= ENHANCE_MAX_LEVEL:
        raise PreconditionFailed(
            "Equipment already at maximum enhancement level.",
            {"enhance_level": current_level, "max_level": ENHANCE_MAX_LEVEL},
        )
    return (current_level + 1) * ENHANCE_COST_PER_LEVEL


def skip_cost(seconds_remaining: float) -> int:
    return math.ceil(max(0, seconds_remaining)) * SKIP_COST_PER_SECOND


def sell_value(rarity: str, enhance_level: int) -> int:
    base = RARITY_BASE_VALUE.get(rarity, RARITY_BASE_VALUE["Common"])
    mult = RARITY_SELL_MULTIPLIER.get(rarity, RARITY_SELL_MULTIPLIER["Common"])
    return math.floor(base * mult * (1 + enhance_level * 0.1))


# ====================================================
# Sanity check
# ====================================================

def validate_game_state(hero) -> bool:
    if hero is None:
        return False
    if hero.level < 1 or hero.level > 1000:
        return False
    if hero.experience < 0 or hero.gold < 0:
        return False
    if hero.current_health < 0 or hero.current_health > hero.max_health:
        return False
    minimum = hero.level * 2
    if hero.attack < minimum or hero.defense < minimum:
        return False
    return True
