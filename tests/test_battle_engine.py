"""
Idle combat loop: one round at a time with a scripted random source.

Against a fresh Warrior (attack 15, defense 10) the scripted Orc below has
95 health, attack 10, defense 6, so at the midpoint roll the hero deals 12
and the Orc deals 5.
"""
import pytest

from game.balance import COMBAT_LOG_SIZE
from game.battle_engine import IdleCombat
from game.exceptions import PreconditionFailed

from .support import ScriptedRandom

ORC = (0.15, 0.5, 0.9)            # archetype, level, no drop
HERO_HITS = (0.0, 0.5, 0.5)       # attack, midpoint damage, no crit
ENEMY_HITS = (0.0, 0.5, 0.5)      # attack, midpoint damage, no crit


@pytest.fixture
def combat(warrior):
    rng = ScriptedRandom(*ORC)
    session = IdleCombat()
    session.start(warrior, rng, now=0)
    return session


class TestStartStop:
    def test_start_spawns_enemy(self, combat):
        assert combat.active
        assert combat.enemy.name == "Orc (Lv.1)"
        assert combat.enemy.current_health == 95

    def test_start_twice_rejected(self, combat, warrior):
        with pytest.raises(PreconditionFailed):
            combat.start(warrior, ScriptedRandom())

    def test_dead_hero_cannot_start(self, warrior):
        warrior.take_damage(1000)
        with pytest.raises(PreconditionFailed):
            IdleCombat().start(warrior, ScriptedRandom(*ORC))

    def test_stopped_loop_does_nothing(self, combat, warrior):
        assert combat.stop() is True
        rng = ScriptedRandom()

        assert combat.process_round(warrior, rng) is None
        assert rng.calls == 0
        assert warrior.idle_stats.total_idle_seconds == 0

    def test_stop_when_idle(self):
        assert IdleCombat().stop() is False


class TestRound:
    """Hero action, then enemy action modified by the hero's choice"""

    def test_attack_exchange(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ENEMY_HITS), interval=3)

        assert result.hero_action == "attack"
        assert result.damage_dealt == 12
        assert combat.enemy.current_health == 83
        assert result.enemy_action == "attack"
        assert result.damage_taken == 5
        assert warrior.current_health == 115
        assert warrior.idle_stats.total_idle_seconds == 3

    def test_hero_critical(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(0.0, 0.5, 0.05, 0.9))

        assert result.critical
        assert result.damage_dealt == 18
        assert result.enemy_action == "prepare"
        assert warrior.current_health == 120

    def test_defend_halves_damage(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(0.75, 0.0, 0.5))

        assert result.hero_action == "defend"
        assert result.damage_taken == 2
        assert warrior.current_health == 118

    def test_successful_evade(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(0.9, 0.0, 0.5, 0.1))

        assert result.hero_action == "evade"
        assert result.evaded
        assert result.damage_taken == 0
        assert warrior.current_health == 120

    def test_failed_evade_takes_full_hit(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(0.9, 0.0, 0.5, 0.5, 0.5))

        assert not result.evaded
        assert result.damage_taken == 5

    def test_enemy_critical(self, combat, warrior):
        result = combat.process_round(warrior, ScriptedRandom(*HERO_HITS, 0.0, 0.5, 0.01))

        assert result.enemy_critical
        assert result.damage_taken == 6


class TestVictory:
    def test_rewards_granted_and_new_enemy(self, combat, warrior):
        combat.enemy.current_health = 1
        first = combat.enemy

        result = combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ORC))

        assert result.enemy_defeated
        assert result.enemy_action is None
        assert warrior.gold == 110
        assert warrior.experience == 10
        assert warrior.idle_stats.enemies_defeated == 1
        assert warrior.idle_stats.pending_gold == 10
        assert combat.enemy is not first
        assert combat.enemy.current_health == combat.enemy.max_health
        assert combat.log[-1].kind == "victory"

    def test_material_drop(self, combat, warrior):
        combat.enemy.current_health = 1
        combat.enemy.rewards["materials"] = {"leather": 1}

        combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ORC))

        assert warrior.materials["leather"] == 9
        assert warrior.idle_stats.pending_materials == {"leather": 1}

    def test_level_up_is_logged(self, combat, warrior):
        warrior.experience = 95
        combat.enemy.current_health = 1

        result = combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ORC))

        assert result.levels_gained == 1
        assert warrior.level == 2
        assert any(entry.kind == "levelup" for entry in combat.log)


class TestDefeatAndRecovery:
    def test_defeat_stops_loop(self, combat, warrior):
        warrior.current_health = 1

        result = combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ENEMY_HITS))

        assert result.hero_defeated
        assert warrior.current_health == 0
        assert not combat.active
        assert combat.recovering
        assert combat.log[-1].kind == "defeat"

    def test_recovering_blocks_restart_only(self, combat, warrior):
        warrior.current_health = 1
        combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ENEMY_HITS))

        with pytest.raises(PreconditionFailed):
            combat.start(warrior, ScriptedRandom(*ORC))

        combat.recover(warrior)
        assert warrior.current_health == warrior.max_health
        assert combat.log[-1].kind == "heal"

        combat.start(warrior, ScriptedRandom(*ORC))
        assert combat.active


class TestCollectAndLog:
    def test_collect_is_idempotent(self, combat, warrior):
        combat.enemy.current_health = 1
        combat.process_round(warrior, ScriptedRandom(*HERO_HITS, *ORC))
        gold_after_fight = warrior.gold

        first = combat.collect_rewards(warrior)
        log_size = len(combat.log)
        second = combat.collect_rewards(warrior)

        assert first == {"gold": 10, "experience": 10, "materials": {}}
        assert second == {"gold": 0, "experience": 0, "materials": {}}
        assert len(combat.log) == log_size
        assert warrior.gold == gold_after_fight
        assert not warrior.idle_stats.has_pending()

    def test_log_is_bounded(self):
        combat = IdleCombat()
        for i in range(COMBAT_LOG_SIZE + 10):
            combat.add_log("damage", f"entry {i}", now=i)

        assert len(combat.log) == COMBAT_LOG_SIZE
        assert combat.log[0].message == "entry 10"
