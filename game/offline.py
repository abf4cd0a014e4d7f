"""
Offline rewards: what a hero earned while nobody was watching.
"""
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict

from .balance import MAX_OFFLINE_SECONDS, MIN_OFFLINE_SECONDS, OFFLINE_MATERIALS
from .exceptions import InvalidArgument, PreconditionFailed
from .formulas import apply_bonus, offline_rewards

logger = logging.getLogger(__name__)


@dataclass
class OfflineRewards:
    offline_seconds: int
    gold: int
    experience: int
    materials: Dict[str, int] = field(default_factory=dict)
    efficiency: float = 1.0

    @classmethod
    def from_dict(cls, data):
        try:
            return cls(
                offline_seconds=int(data["offline_seconds"]),
                gold=int(data["gold"]),
                experience=int(data["experience"]),
                materials={str(k): int(v) for k, v in (data.get("materials") or {}).items()},
                efficiency=float(data.get("efficiency", 1.0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError):
            raise InvalidArgument("Malformed offline rewards.") from None


def calculate(hero, last_active, rng, now=None):
    """
    Rewards for the absence since ``last_active`` (epoch seconds), or None
    when the hero was away for less than five minutes.
    """
    now = now if now is not None else time.time()
    offline_seconds = int(now - last_active)
    if offline_seconds < MIN_OFFLINE_SECONDS:
        return None
    return OfflineRewards(**offline_rewards(offline_seconds, hero.level, rng))


def check_claim(hero, rewards: OfflineRewards):
    """Reject rewards a client could not have earned."""
    if rewards.offline_seconds < 0:
        raise InvalidArgument("Offline time cannot be negative.")
    if rewards.offline_seconds > MAX_OFFLINE_SECONDS:
        raise PreconditionFailed(
            "Offline time exceeds the maximum offline window.",
            {"offline_seconds": rewards.offline_seconds, "max_offline_seconds": MAX_OFFLINE_SECONDS},
        )
    ceiling = offline_rewards(rewards.offline_seconds, hero.level, _NoMaterials())
    if rewards.gold < 0 or rewards.experience < 0 or any(qty < 0 for qty in rewards.materials.values()):
        raise InvalidArgument("Offline rewards cannot be negative.")
    if rewards.gold > ceiling["gold"] or rewards.experience > ceiling["experience"]:
        logger.warning(
            "Rejected offline claim for hero %s: %s gold / %s exp over ceiling %s / %s",
            hero.id, rewards.gold, rewards.experience, ceiling["gold"], ceiling["experience"],
        )
        raise InvalidArgument(
            "Offline rewards exceed what the offline time allows.",
            {"max_gold": ceiling["gold"], "max_experience": ceiling["experience"]},
        )
    hours = rewards.offline_seconds / 3600
    for kind, qty in rewards.materials.items():
        if kind not in OFFLINE_MATERIALS:
            raise InvalidArgument(f"'{kind}' is not an offline material.")
        per_hour = OFFLINE_MATERIALS[kind][1]
        if qty > math.floor(max(1, hours * per_hour)) + 1:
            raise InvalidArgument(
                f"Offline {kind} exceeds what the offline time allows.", {"material": kind}
            )


def claim(hero, rewards: OfflineRewards, use_bonus=False, now=None, trusted=False):
    """
    Grant offline rewards. Rewards from the client are checked against the
    ceiling first; ``trusted`` rewards (computed by ``calculate``) are not.
    """
    now = now if now is not None else time.time()
    if not trusted:
        check_claim(hero, rewards)
    final = apply_bonus(
        {"gold": rewards.gold, "experience": rewards.experience, "materials": rewards.materials},
        use_bonus,
    )

    hero.gain_gold(final["gold"], now)
    hero.gain_experience(final["experience"], now)
    if final["materials"]:
        hero.add_materials(final["materials"], now)
    hero.touch(now)
    return {
        "gold_gained": final["gold"],
        "experience_gained": final["experience"],
        "materials_gained": final["materials"],
        "bonus_applied": bool(use_bonus),
    }


class _NoMaterials:
    """Random source that never rolls a material; used for the gold/exp ceiling."""

    def random(self):
        return 0.999999
