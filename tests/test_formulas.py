"""
Formula library unit tests: experience curve, damage, enemy generation,
offline curve, arena rewards and prices.
"""
import pytest

from game.balance import MAX_OFFLINE_SECONDS
from game.exceptions import PreconditionFailed
from game.formulas import (
    apply_bonus,
    arena_rewards,
    compute_damage,
    enhancement_cost,
    exp_to_next_level,
    generate_enemy,
    level_up,
    offline_effective_hours,
    offline_rewards,
    pick,
    power_rating,
    roll_int,
    sell_value,
    skip_cost,
    total_exp_for_level,
    validate_game_state,
    win_probability,
)

from .support import ScriptedRandom


class NeverDrops:
    """Random source that always rolls high: no material drops, max jitter."""

    def random(self):
        return 0.999


class TestRandomHelpers:
    def test_roll_int_covers_bounds(self):
        assert roll_int(ScriptedRandom(0.0), -2, 2) == -2
        assert roll_int(ScriptedRandom(0.5), -2, 2) == 0
        assert roll_int(ScriptedRandom(0.9999), -2, 2) == 2

    def test_pick_uses_one_draw(self):
        rng = ScriptedRandom(0.5)
        assert pick(rng, ["a", "b", "c", "d"]) == "c"
        assert rng.calls == 1


class TestExperience:
    """Experience curve and level-up loop"""

    def test_exp_to_next_level(self):
        assert exp_to_next_level(1) == 100
        assert exp_to_next_level(7) == 700

    def test_total_exp_for_level(self):
        assert total_exp_for_level(1) == 0
        assert total_exp_for_level(5) == 100 + 200 + 300 + 400

    def test_gain_250_on_fresh_warrior(self, warrior):
        """250 exp: the 100 threshold is consumed, the next one (200) is not."""
        level_up(warrior, 250)

        assert warrior.level == 2
        assert warrior.experience == 150
        assert warrior.experience_to_next == 200
        assert warrior.skill_points == 1
        assert warrior.attack == 18
        assert warrior.defense == 12
        assert warrior.max_health == 130
        assert warrior.current_health == 130

    def test_spanning_n_thresholds_gains_n_levels(self, warrior):
        level_up(warrior, total_exp_for_level(6))

        assert warrior.level == 6
        assert warrior.skill_points == 5
        assert warrior.experience == 0
        assert warrior.base_attack == 15 + 5 * 3

    def test_experience_stays_below_threshold(self, warrior):
        previous_level = warrior.level
        for gain in [0, 1, 99, 100, 101, 250, 999, 5000, 12345]:
            level_up(warrior, gain)
            assert 0 <= warrior.experience < warrior.experience_to_next
            assert warrior.level >= previous_level
            previous_level = warrior.level

    def test_negative_gain_rejected(self, warrior):
        with pytest.raises(ValueError):
            level_up(warrior, -1)


class TestDamage:
    def test_midpoint_roll_is_base_damage(self):
        # base = 20 - 10/2 = 15
        assert compute_damage(20, 10, ScriptedRandom(0.5)) == 15

    def test_roll_spread(self):
        # variance = 15 * 0.2 = 3, so damage spans 13.5 .. 16.5
        assert compute_damage(20, 10, ScriptedRandom(0.0)) == 13
        assert compute_damage(20, 10, ScriptedRandom(0.999)) == 16

    @pytest.mark.parametrize("defense", [10, 100, 10_000])
    def test_never_below_one(self, defense):
        assert compute_damage(5, defense, ScriptedRandom(0.0)) == 1
        assert compute_damage(5, defense, ScriptedRandom(0.999)) >= 1

    def test_power_rating(self):
        assert power_rating(15, 10, 120) == pytest.approx(57.0)

    def test_win_probability_is_clamped(self):
        assert win_probability(1000, 1) == 0.9
        assert win_probability(1, 1000) == 0.1
        assert win_probability(50, 50) == 0.5


class TestEnemyGeneration:
    """Idle-loop enemy formula: flat rewards, level +-1, 30% drop"""

    def test_orc_without_drop(self):
        # archetype 0.15 -> Orc (x1.0), level roll 0.5 -> +0, drop roll 0.9 -> none
        enemy = generate_enemy(1, ScriptedRandom(0.15, 0.5, 0.9))

        assert enemy["name"] == "Orc (Lv.1)"
        assert enemy["type"] == "Monster"
        assert enemy["level"] == 1
        assert enemy["health"] == 95
        assert enemy["attack"] == 10
        assert enemy["defense"] == 6
        assert enemy["rewards"] == {"experience": 10, "gold": 10, "materials": {}}

    def test_goblin_with_drop(self):
        enemy = generate_enemy(1, ScriptedRandom(0.0, 0.0, 0.1, 0.0))

        # level 1 - 1 is clamped to 1; Goblin multiplier 0.8
        assert enemy["level"] == 1
        assert enemy["health"] == 76
        assert enemy["attack"] == 8
        assert enemy["defense"] == 4
        assert enemy["rewards"]["materials"] == {"ironOre": 1}

    def test_level_tracks_hero(self):
        enemy = generate_enemy(10, ScriptedRandom(0.15, 0.999, 0.9))
        assert enemy["level"] == 11


class TestOfflineRewards:
    def test_one_hour_full_efficiency(self):
        rewards = offline_rewards(3600, 1, NeverDrops())

        assert rewards["gold"] == 38
        assert rewards["experience"] == 75
        assert rewards["materials"] == {}
        assert rewards["efficiency"] == 1.0

    def test_efficiency_decays_after_two_hours(self):
        assert offline_effective_hours(2) == 2
        assert offline_effective_hours(4) == pytest.approx(3.8)
        assert offline_rewards(4 * 3600, 1, NeverDrops())["gold"] == 144

    def test_monotonic_up_to_cap_and_constant_beyond(self):
        previous = None
        for seconds in range(0, 10 * 3600 + 1, 600):
            rewards = offline_rewards(seconds, 3, NeverDrops())
            if previous is not None:
                assert rewards["gold"] >= previous["gold"]
                assert rewards["experience"] >= previous["experience"]
            previous = rewards

        at_cap = offline_rewards(MAX_OFFLINE_SECONDS, 3, NeverDrops())
        beyond = offline_rewards(MAX_OFFLINE_SECONDS + 7200, 3, NeverDrops())
        assert beyond["gold"] == at_cap["gold"]
        assert beyond["experience"] == at_cap["experience"]
        assert beyond["offline_seconds"] == MAX_OFFLINE_SECONDS

    def test_materials_roll(self):
        # every kind succeeds its chance roll (0.0) and rolls the lowest quantity (0.0)
        rewards = offline_rewards(3600, 1, ScriptedRandom(default=0.0))
        assert rewards["materials"] == {"ironOre": 1, "leather": 1, "cloth": 1, "wood": 1, "crystals": 1}

    def test_bonus_doubles(self):
        doubled = apply_bonus({"gold": 38, "experience": 75, "materials": {"wood": 2}}, True)
        assert doubled == {"gold": 76, "experience": 150, "materials": {"wood": 4}}

        same = apply_bonus({"gold": 38, "experience": 75}, False)
        assert same == {"gold": 38, "experience": 75, "materials": {}}


class TestArenaRewards:
    def test_equal_ranks_victory(self):
        rewards = arena_rewards(True, 5000, 5000, 1)
        assert rewards == {"honor_gained": 15, "rank_change": 1, "experience_gained": 53}

    def test_beating_better_ranked_pays_more(self):
        equal = arena_rewards(True, 5000, 5000, 1)
        upset = arena_rewards(True, 5000, 3000, 1)

        assert upset["honor_gained"] > equal["honor_gained"]
        assert upset["rank_change"] > equal["rank_change"]

    def test_climb_never_passes_opponent(self):
        rewards = arena_rewards(True, 5020, 5000, 1)
        assert rewards["rank_change"] <= 20

    def test_beating_worse_ranked_pays_minimum(self):
        rewards = arena_rewards(True, 3000, 5000, 1)
        assert rewards["honor_gained"] == 5
        assert rewards["rank_change"] == 1

    def test_defeat(self):
        rewards = arena_rewards(False, 5000, 5000, 4)
        assert rewards == {"honor_gained": -5, "rank_change": -1, "experience_gained": 24}

    def test_defeat_loss_is_bounded(self):
        rewards = arena_rewards(False, 1000, 9000, 1)
        assert rewards["honor_gained"] >= -10
        assert rewards["rank_change"] == -10


class TestPrices:
    def test_enhancement_cost(self):
        assert enhancement_cost(0) == 100
        assert enhancement_cost(9) == 1000

    def test_enhancement_cost_rejects_max_level(self):
        with pytest.raises(PreconditionFailed):
            enhancement_cost(10)

    def test_skip_cost_rounds_up(self):
        assert skip_cost(12.2) == 130
        assert skip_cost(0) == 0

    def test_sell_value(self):
        assert sell_value("Common", 0) == 30
        assert sell_value("Legendary", 0) == 600
        assert sell_value("Rare", 5) > sell_value("Rare", 0)


class TestValidateGameState:
    def test_fresh_hero_is_valid(self, warrior):
        assert validate_game_state(warrior)

    def test_negative_gold(self, warrior):
        warrior.gold = -1
        assert not validate_game_state(warrior)

    def test_overhealed(self, warrior):
        warrior.current_health = warrior.max_health + 1
        assert not validate_game_state(warrior)

    def test_stats_too_low_for_level(self, warrior):
        warrior.level = 50
        assert not validate_game_state(warrior)
