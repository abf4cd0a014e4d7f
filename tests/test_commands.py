"""
The run_game_loop command pumps the same Game the API views use.
"""
import io
import random

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from game.management.commands.run_game_loop import parse_addrport
from game.services import Game, reset_game
from game.storage import MemoryHeroStore


@pytest.fixture
def shared_game(clock):
    game = Game(store=MemoryHeroStore(), rng=random.Random(3), clock=clock)
    reset_game(game)
    yield game
    reset_game(None)


class TestRunGameLoop:
    def test_once_ticks_sessions_started_in_process(self, shared_game, clock):
        hero = shared_game.heroes.create("Aria", "Warrior")
        shared_game.combat.start(hero.id)
        clock.advance(6)

        out = io.StringIO()
        call_command("run_game_loop", "--once", stdout=out)

        assert shared_game.heroes.get(hero.id).idle_stats.total_idle_seconds == 6
        assert "Ran 2 scheduled tasks." in out.getvalue()


class TestParseAddrport:
    def test_port_only(self):
        assert parse_addrport("9000") == ("127.0.0.1", 9000)

    def test_address_and_port(self):
        assert parse_addrport("0.0.0.0:8080") == ("0.0.0.0", 8080)

    def test_bad_port(self):
        with pytest.raises(CommandError):
            parse_addrport("localhost:http")
