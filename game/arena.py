"""
Arena matchmaking, battle resolution and the derived leaderboard.
"""
import math
import uuid
from dataclasses import asdict, dataclass, field

from .balance import (
    ARENA_LEVEL_VARIANCE,
    ARENA_MAX_RANK_BONUS,
    ARENA_MIN_RANK_VARIANCE,
    ARENA_RANK_BONUS_CEILING,
    ARENA_RANK_VARIANCE,
    HERO_CLASSES,
    LEADERBOARD_NAMES,
    LEADERBOARD_SIZE,
    OPPONENT_NAMES,
)
from .formulas import arena_rewards, pick, roll_int, win_probability


def battle_power(attack, defense, max_health) -> float:
    return attack + defense + max_health / 10


@dataclass
class ArenaOpponent:
    name: str
    level: int
    hero_class: str
    rank: int
    attack: int
    defense: int
    health: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def power(self) -> float:
        return battle_power(self.attack, self.defense, self.health)

    def to_dict(self):
        return asdict(self)


@dataclass
class BattleResult:
    victory: bool
    honor_gained: int
    rank_change: int
    experience_gained: int
    opponent: ArenaOpponent
    player_power: float
    opponent_power: float


@dataclass
class LeaderboardEntry:
    id: str
    name: str
    level: int
    rank: int
    honor: int
    synthetic: bool = False


def find_opponent(hero_level: int, hero_rank: int, rng) -> ArenaOpponent:
    """
    Synthesize an opponent close to the hero's rank and level.

    Draw order: rank, level, class, name.
    """
    variance = max(ARENA_MIN_RANK_VARIANCE, math.floor(hero_rank * ARENA_RANK_VARIANCE))
    rank = max(1, math.floor(hero_rank + (rng.random() - 0.5) * variance * 2))
    level = max(1, hero_level + roll_int(rng, -ARENA_LEVEL_VARIANCE, ARENA_LEVEL_VARIANCE))
    hero_class = pick(rng, list(HERO_CLASSES))
    name = pick(rng, OPPONENT_NAMES)

    base = HERO_CLASSES[hero_class]
    level_mult = 1 + (level - 1) * 0.1
    rank_bonus = max(0, (ARENA_RANK_BONUS_CEILING - rank) / ARENA_RANK_BONUS_CEILING) * ARENA_MAX_RANK_BONUS
    scale = level_mult * (1 + rank_bonus)

    return ArenaOpponent(
        name=name,
        level=level,
        hero_class=hero_class,
        rank=rank,
        attack=math.floor(base["attack"] * scale),
        defense=math.floor(base["defense"] * scale),
        health=math.floor(base["health"] * scale),
    )


def odds(hero, opponent: ArenaOpponent) -> float:
    return win_probability(battle_power(hero.attack, hero.defense, hero.max_health), opponent.power)


def resolve_battle(hero, opponent: ArenaOpponent, rng, now=None) -> BattleResult:
    """
    Roll the battle and apply the outcome to the hero: experience always,
    rank (never below 1) and honor (never below 0).
    """
    player_power = battle_power(hero.attack, hero.defense, hero.max_health) * (0.8 + rng.random() * 0.4)
    opponent_power = opponent.power * (0.8 + rng.random() * 0.4)
    victory = player_power > opponent_power

    rewards = arena_rewards(victory, hero.arena_rank, opponent.rank, hero.level)
    hero.gain_experience(rewards["experience_gained"], now)
    hero.arena_rank = max(1, hero.arena_rank - rewards["rank_change"])
    hero.gain_honor(rewards["honor_gained"], now)

    return BattleResult(
        victory=victory,
        honor_gained=rewards["honor_gained"],
        rank_change=rewards["rank_change"],
        experience_gained=rewards["experience_gained"],
        opponent=opponent,
        player_power=round(player_power, 2),
        opponent_power=round(opponent_power, 2),
    )


def build_leaderboard(heroes, rng, size=LEADERBOARD_SIZE):
    """
    Real heroes plus synthetic entries filling the top ``size`` ranks that no
    real hero holds, sorted by rank (best first).
    """
    entries = [
        LeaderboardEntry(id=h.id, name=h.name, level=h.level, rank=h.arena_rank, honor=h.honor_points)
        for h in heroes
    ]
    taken = {entry.rank for entry in entries}
    top_level = max((h.level for h in heroes), default=1)
    top_honor = max((h.honor_points for h in heroes), default=0)
    worst_rank = max(taken, default=size)

    for rank in range(1, size + 1):
        if rank in taken:
            continue
        entries.append(LeaderboardEntry(
            id=f"fake_{rank}",
            name=pick(rng, LEADERBOARD_NAMES),
            level=max(1, top_level + roll_int(rng, -5, 5)),
            rank=rank,
            honor=max(0, top_honor + (worst_rank - rank) * 10 + math.floor(rng.random() * 100)),
            synthetic=True,
        ))

    entries.sort(key=lambda e: (e.rank, -e.honor))
    return entries
