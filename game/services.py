"""
Game services: the operation surface the HTTP views (and tests) call.

``Game`` owns the hero store, the random source, the clock, the cooperative
scheduler and one re-entrant lock per hero. Each service owns one entity's
state (idle sessions, arena tickets, pending offline rewards) and reaches
heroes only through ``Game.session``, which loads the hero under its lock,
lets the caller validate and mutate it, and saves it only if nothing raised.
"""
import copy
import logging
import random
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings

from . import arena, offline, shop, workshop
from .arena import ArenaOpponent, BattleResult
from .balance import (
    ACTIVITY_REFRESH_SECONDS,
    AD_SIMULATED_SECONDS,
    ARENA_BATTLE_DELAY_SECONDS,
    COMBAT_INTERVAL_SECONDS,
    CRAFTING_RECIPES,
    HERO_NAME_MAX_LENGTH,
    LEADERBOARD_REFRESH_SECONDS,
    RECOVERY_SECONDS,
    SHOP_ITEMS,
    exp_to_next_level,
)
from .battle_engine import IdleCombat
from .exceptions import InvalidArgument, NotFound, PreconditionFailed
from .formulas import validate_game_state
from .hero import create_hero, new_id
from .offline import OfflineRewards
from .scheduler import Scheduler
from .storage import DjangoHeroStore, MemoryHeroStore

logger = logging.getLogger(__name__)

# Fields a client may overwrite through HeroService.update
UPDATABLE_FIELDS = (
    "name",
    "level",
    "experience",
    "gold",
    "current_health",
    "skill_points",
)


class Game:
    def __init__(self, store=None, rng=None, clock=time.time, scheduler=None,
                 combat_interval=COMBAT_INTERVAL_SECONDS):
        self.store = store if store is not None else MemoryHeroStore()
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock
        self.scheduler = scheduler if scheduler is not None else Scheduler(clock)
        self.combat_interval = combat_interval

        self._locks = {}
        self._locks_guard = threading.Lock()

        self.heroes = HeroService(self)
        self.combat = CombatService(self)
        self.arena = ArenaService(self)
        self.workshop = WorkshopService(self)
        self.offline = OfflineService(self)
        self.shop = ShopService(self)

        self.scheduler.call_every(
            LEADERBOARD_REFRESH_SECONDS, self.arena.refresh_leaderboard, key="leaderboard"
        )
        self.scheduler.call_every(
            ACTIVITY_REFRESH_SECONDS, self.combat.refresh_activity, key="activity"
        )

    def now(self):
        return self.clock()

    def pump(self):
        """Run every scheduled continuation that is due. Hosts call this on each request."""
        return self.scheduler.run_pending()

    def lock_for(self, hero_id):
        with self._locks_guard:
            lock = self._locks.get(hero_id)
            if lock is None:
                lock = self._locks[hero_id] = threading.RLock()
            return lock

    def load(self, hero_id):
        hero = self.store.get(hero_id)
        if hero is None:
            raise NotFound("Hero not found.", {"hero_id": hero_id})
        return hero

    @contextmanager
    def session(self, hero_id):
        """Load -> (caller validates and applies) -> save, serialized per hero."""
        with self.lock_for(hero_id):
            with self.store.atomic():
                hero = self.store.get(hero_id, for_update=True)
                if hero is None:
                    raise NotFound("Hero not found.", {"hero_id": hero_id})
                yield hero
                self.store.save(hero)

    def global_stats(self):
        heroes = self.store.all()
        return {
            "total_heroes": len(heroes),
            "active_idle_sessions": self.combat.active_count(),
            "arena_battles": self.store.battle_count(),
            "pending_arena_battles": len(self.arena.pending),
            "highest_level": max((h.level for h in heroes), default=0),
            "total_enemies_defeated": sum(h.idle_stats.enemies_defeated for h in heroes),
            "server_time": self.now(),
        }


# ==========================
# Héroes
# ==========================

class HeroService:
    def __init__(self, game):
        self.game = game

    def create(self, name, hero_class):
        hero = create_hero(name, hero_class, now=self.game.now())
        self.game.store.add(hero)
        logger.info("Created hero %s (%s, %s)", hero.id, hero.name, hero.hero_class)
        return hero

    def get(self, hero_id):
        return self.game.store.get(hero_id)

    def update(self, hero_id, changes):
        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise InvalidArgument("These fields cannot be updated.", {"fields": unknown})

        with self.game.session(hero_id) as hero:
            candidate = copy.deepcopy(hero)
            for key, value in changes.items():
                setattr(candidate, key, value)
            if "name" in changes:
                candidate.name = (candidate.name or "").strip()
                if not 1 <= len(candidate.name) <= HERO_NAME_MAX_LENGTH:
                    raise InvalidArgument(
                        f"Hero name must be between 1 and {HERO_NAME_MAX_LENGTH} characters.",
                        {"name": candidate.name},
                    )
            candidate.experience_to_next = exp_to_next_level(candidate.level)
            if not validate_game_state(candidate) or candidate.experience >= candidate.experience_to_next:
                logger.warning("Rejected update for hero %s: %s", hero_id, changes)
                raise InvalidArgument("Invalid game state.", {"fields": sorted(changes)})

            for key in changes:
                setattr(hero, key, getattr(candidate, key))
            hero.experience_to_next = candidate.experience_to_next
            hero.touch(self.game.now())
        return hero


# ==========================
# Combate idle
# ==========================

class CombatService:
    def __init__(self, game):
        self.game = game
        self.sessions = {}

    def session_for(self, hero_id) -> IdleCombat:
        combat = self.sessions.get(hero_id)
        if combat is None:
            combat = self.sessions[hero_id] = IdleCombat()
        return combat

    def active_count(self):
        return sum(1 for combat in self.sessions.values() if combat.active)

    def start(self, hero_id):
        game = self.game
        with game.session(hero_id) as hero:
            combat = self.session_for(hero_id)
            if not hero.is_alive and not combat.recovering:
                self._resume_recovery(hero, combat)
            enemy = combat.start(hero, game.rng, game.now())
            game.scheduler.call_every(game.combat_interval, self.tick, hero_id, key=("combat", hero_id))
        logger.info("Hero %s started idle combat against %s", hero_id, enemy.name)
        return {"enemy": enemy, "combat": combat}

    def stop(self, hero_id):
        game = self.game
        with game.lock_for(hero_id):
            game.load(hero_id)
            game.scheduler.cancel(("combat", hero_id))
            stopped = self.session_for(hero_id).stop(game.now())
        if stopped:
            logger.info("Hero %s stopped idle combat", hero_id)
        return {"stopped": stopped}

    def tick(self, hero_id):
        game = self.game
        with game.session(hero_id) as hero:
            combat = self.session_for(hero_id)
            # Stop may have landed after this tick was queued
            if not combat.active:
                game.scheduler.cancel(("combat", hero_id))
                return None
            result = combat.process_round(hero, game.rng, game.now(), game.combat_interval)

        logger.debug("Idle round for hero %s: %s", hero_id, result)
        if result.levels_gained:
            logger.info("Hero %s reached level %s", hero_id, hero.level)
        if result.hero_defeated:
            game.scheduler.cancel(("combat", hero_id))
            game.scheduler.call_later(RECOVERY_SECONDS, self.recover, hero_id, key=("recover", hero_id))
            logger.info("Hero %s was defeated, recovering in %ss", hero_id, RECOVERY_SECONDS)
        return result

    def _resume_recovery(self, hero, combat):
        """
        A defeated hero whose recovery task is not in this process's scheduler
        (restart, another worker). The defeat is the hero's last activity, so
        heal now if the delay has passed, otherwise schedule the remainder.
        """
        game = self.game
        elapsed = game.now() - hero.last_active
        if elapsed >= RECOVERY_SECONDS:
            combat.recover(hero, game.now())
            logger.info("Hero %s recovered (recovery delay already elapsed)", hero.id)
            return
        combat.recovering = True
        game.scheduler.call_later(
            RECOVERY_SECONDS - elapsed, self.recover, hero.id, key=("recover", hero.id)
        )

    def recover(self, hero_id):
        with self.game.session(hero_id) as hero:
            self.session_for(hero_id).recover(hero, self.game.now())
        logger.info("Hero %s recovered", hero_id)

    def collect(self, hero_id):
        with self.game.session(hero_id) as hero:
            return self.session_for(hero_id).collect_rewards(hero, self.game.now())

    def state(self, hero_id):
        hero = self.game.load(hero_id)
        combat = self.session_for(hero_id)
        return {
            "active": combat.active,
            "recovering": combat.recovering,
            "enemy": combat.enemy,
            "log": list(combat.log),
            "idle_stats": hero.idle_stats,
            "current_health": hero.current_health,
            "max_health": hero.max_health,
        }

    def refresh_activity(self):
        """Keep last_active current for heroes that are fighting idle."""
        for hero_id, combat in list(self.sessions.items()):
            if not combat.active:
                continue
            try:
                with self.game.session(hero_id) as hero:
                    hero.touch(self.game.now())
            except NotFound:
                self.sessions.pop(hero_id, None)


# ==========================
# Arena
# ==========================

@dataclass
class ArenaBattle:
    hero_id: str
    opponent: ArenaOpponent
    started_at: float
    resolves_at: float
    result: Optional[BattleResult] = None
    id: str = field(default_factory=new_id)

    @property
    def status(self):
        return "pending" if self.result is None else "resolved"


class ArenaService:
    def __init__(self, game):
        self.game = game
        self.opponents = {}
        self.pending = {}
        self.battles = {}
        self._leaderboard = None

    def find_opponent(self, hero_id):
        game = self.game
        with game.lock_for(hero_id):
            hero = game.load(hero_id)
            opponent = arena.find_opponent(hero.level, hero.arena_rank, game.rng)
            self.opponents[hero_id] = opponent
        return opponent, arena.odds(hero, opponent)

    def start_battle(self, hero_id, opponent_id):
        game = self.game
        with game.lock_for(hero_id):
            game.load(hero_id)
            if hero_id in self.pending:
                raise PreconditionFailed(
                    "An arena battle is already in progress.",
                    {"battle_id": self.pending[hero_id].id},
                )
            opponent = self.opponents.get(hero_id)
            if opponent is None or opponent.id != opponent_id:
                raise NotFound("Opponent not found.", {"opponent_id": opponent_id})

            now = game.now()
            battle = ArenaBattle(
                hero_id=hero_id,
                opponent=opponent,
                started_at=now,
                resolves_at=now + ARENA_BATTLE_DELAY_SECONDS,
            )
            self.pending[hero_id] = battle
            self.battles[hero_id] = battle
            game.scheduler.call_later(ARENA_BATTLE_DELAY_SECONDS, self.resolve, hero_id, key=("arena", hero_id))
        return battle

    def resolve(self, hero_id):
        game = self.game
        battle = self.pending.get(hero_id)
        if battle is None:
            return None
        try:
            with game.session(hero_id) as hero:
                result = arena.resolve_battle(hero, battle.opponent, game.rng, game.now())
                game.store.record_battle(hero_id, result)
        finally:
            self.pending.pop(hero_id, None)
        battle.result = result
        if self.opponents.get(hero_id) is battle.opponent:
            del self.opponents[hero_id]
        logger.info(
            "Arena: hero %s %s against %s (rank change %+d, honor %+d)",
            hero_id, "won" if result.victory else "lost", battle.opponent.name,
            result.rank_change, result.honor_gained,
        )
        return result

    def result(self, hero_id):
        self.game.load(hero_id)
        battle = self.battles.get(hero_id)
        if battle is None:
            raise NotFound("No arena battle for this hero.", {"hero_id": hero_id})
        return battle

    def refresh_leaderboard(self):
        self._leaderboard = arena.build_leaderboard(self.game.store.all(), self.game.rng)
        return self._leaderboard

    def leaderboard(self):
        if self._leaderboard is None:
            return self.refresh_leaderboard()
        return self._leaderboard


# ==========================
# Taller / equipo
# ==========================

class WorkshopService:
    def __init__(self, game):
        self.game = game

    def recipes(self):
        return CRAFTING_RECIPES

    def materials(self, hero_id):
        hero = self.game.load(hero_id)
        return {"materials": dict(hero.materials), "crafting_queue": list(hero.crafting_queue)}

    def craft(self, hero_id, recipe_id):
        with self.game.session(hero_id) as hero:
            job = workshop.start_crafting(hero, recipe_id, self.game.now())
        return {"crafting_item": job, "gold": hero.gold, "materials": dict(hero.materials)}

    def finish(self, hero_id, crafting_id):
        with self.game.session(hero_id) as hero:
            item = workshop.finish_crafting(hero, crafting_id, self.game.now())
        logger.info("Hero %s crafted %s", hero_id, item.name)
        return {"equipment": item}

    def skip(self, hero_id, crafting_id):
        with self.game.session(hero_id) as hero:
            cost = workshop.skip_crafting(hero, crafting_id, self.game.now())
        return {"cost": cost, "gold": hero.gold}

    def enhance(self, hero_id, equipment_id):
        with self.game.session(hero_id) as hero:
            item, cost = workshop.enhance_equipment(hero, equipment_id, self.game.now())
        return {"equipment": item, "cost": cost, "gold": hero.gold}

    def equip(self, hero_id, equipment_id):
        with self.game.session(hero_id) as hero:
            equipped, unequipped = hero.equip(equipment_id, self.game.now())
        return {"equipped": equipped, "unequipped": unequipped, "hero": hero}

    def unequip(self, hero_id, slot):
        with self.game.session(hero_id) as hero:
            item = hero.unequip(slot, self.game.now())
        return {"unequipped": item, "hero": hero}


# ==========================
# Recompensas offline
# ==========================

class OfflineService:
    def __init__(self, game):
        self.game = game
        self.pending = {}
        self.last_claims = {}

    def calculate(self, hero_id, last_active=None):
        hero = self.game.load(hero_id)
        since = hero.last_active if last_active is None else last_active
        rewards = offline.calculate(hero, since, self.game.rng, self.game.now())
        if rewards is None:
            self.pending.pop(hero_id, None)
        else:
            self.pending[hero_id] = rewards
        return rewards

    def claim(self, hero_id, rewards=None, use_bonus=False):
        with self.game.session(hero_id) as hero:
            trusted = rewards is None
            if trusted:
                rewards = self.pending.get(hero_id)
                if rewards is None:
                    raise PreconditionFailed("No offline rewards to claim.")
            elif not isinstance(rewards, OfflineRewards):
                rewards = OfflineRewards.from_dict(rewards)
            result = offline.claim(hero, rewards, use_bonus, self.game.now(), trusted=trusted)
        self.pending.pop(hero_id, None)
        self.last_claims[hero_id] = result
        logger.info("Hero %s claimed offline rewards: %s", hero_id, result)
        return result

    def watch_ad(self, hero_id):
        """Simulated advertisement: the bonus claim lands once the ad has 'played'."""
        game = self.game
        with game.lock_for(hero_id):
            game.load(hero_id)
            if hero_id not in self.pending:
                raise PreconditionFailed("No offline rewards to claim.")
            if game.scheduler.scheduled(("ad", hero_id)):
                raise PreconditionFailed("An ad is already playing.")
            game.scheduler.call_later(AD_SIMULATED_SECONDS, self._finish_ad, hero_id, key=("ad", hero_id))
        return {"status": "watching", "seconds": AD_SIMULATED_SECONDS}

    def _finish_ad(self, hero_id):
        return self.claim(hero_id, use_bonus=True)

    def state(self, hero_id):
        self.game.load(hero_id)
        return {
            "pending": self.pending.get(hero_id),
            "ad_playing": self.game.scheduler.scheduled(("ad", hero_id)),
            "last_claim": self.last_claims.get(hero_id),
        }


# ==========================
# Tienda
# ==========================

class ShopService:
    def __init__(self, game):
        self.game = game

    def items(self):
        return SHOP_ITEMS

    def buy(self, hero_id, item_id):
        with self.game.session(hero_id) as hero:
            result = shop.buy(hero, item_id, self.game.now())
        result["gold_balance"] = hero.gold
        result["honor_balance"] = hero.honor_points
        logger.info("Hero %s bought %s", hero_id, item_id)
        return result


# ==========================
# Instancia compartida
# ==========================

_game = None
_game_guard = threading.Lock()


def get_game():
    """The process-wide Game, built from ``settings.IDLEREALM`` on first use."""
    global _game
    with _game_guard:
        if _game is None:
            conf = getattr(settings, "IDLEREALM", {})
            seed = conf.get("RNG_SEED")
            _game = Game(
                store=DjangoHeroStore(),
                rng=random.Random(seed),
                combat_interval=conf.get("COMBAT_INTERVAL_SECONDS", COMBAT_INTERVAL_SECONDS),
            )
        return _game


def reset_game(game=None):
    """Replace (or drop) the shared Game; tests use this to inject fakes."""
    global _game
    with _game_guard:
        _game = game
