"""
HTTP boundary: DRF views over the Django-backed store.
"""
import random

import pytest
from rest_framework.test import APIClient

from game.models import ArenaBattleRecord, HeroRecord
from game.services import Game, reset_game
from game.storage import DjangoHeroStore

from .support import FakeClock

pytestmark = pytest.mark.django_db


@pytest.fixture
def api_clock():
    return FakeClock()


@pytest.fixture
def api_game(api_clock):
    game = Game(store=DjangoHeroStore(), rng=random.Random(99), clock=api_clock)
    reset_game(game)
    yield game
    reset_game(None)


@pytest.fixture
def client(api_game):
    return APIClient()


@pytest.fixture
def hero_id(client):
    response = client.post("/api/heroes/", {"name": "Aria", "hero_class": "Warrior"}, format="json")
    assert response.status_code == 201
    return response.data["id"]


class TestHeroes:
    def test_create(self, client):
        response = client.post("/api/heroes/", {"name": "Aria", "hero_class": "Warrior"}, format="json")

        assert response.status_code == 201
        body = response.data
        assert (body["level"], body["attack"], body["defense"], body["max_health"]) == (1, 15, 10, 120)
        assert body["gold"] == 100
        assert HeroRecord.objects.filter(id=body["id"]).exists()

    def test_create_bad_class(self, client):
        response = client.post("/api/heroes/", {"name": "Aria", "hero_class": "Bard"}, format="json")
        assert response.status_code == 400

    def test_create_long_name(self, client):
        response = client.post("/api/heroes/", {"name": "x" * 21, "hero_class": "Mage"}, format="json")
        assert response.status_code == 400

    def test_get_missing(self, client):
        response = client.get("/api/heroes/nobody/")
        assert response.status_code == 404
        assert response.data["code"] == "not_found"

    def test_patch(self, client, hero_id):
        response = client.patch(f"/api/heroes/{hero_id}/", {"gold": 250}, format="json")
        assert response.status_code == 200
        assert client.get(f"/api/heroes/{hero_id}/").data["gold"] == 250

    def test_patch_invalid_state(self, client, hero_id):
        response = client.patch(f"/api/heroes/{hero_id}/", {"level": 40}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "invalid_argument"

    def test_patch_forbidden_field(self, client, hero_id):
        response = client.patch(f"/api/heroes/{hero_id}/", {"honor_points": 9999}, format="json")
        assert response.status_code == 400


class TestIdleCombat:
    def test_start_state_stop(self, client, hero_id, api_clock):
        response = client.post("/api/combat/idle/start/", {"hero_id": hero_id}, format="json")
        assert response.status_code == 200
        assert response.data["enemy"]["current_health"] > 0

        again = client.post("/api/combat/idle/start/", {"hero_id": hero_id}, format="json")
        assert again.status_code == 409
        assert again.data["code"] == "precondition_failed"

        api_clock.advance(3)
        state = client.get(f"/api/combat/idle/{hero_id}/").data
        assert state["active"] is True
        assert state["idle_stats"]["total_idle_seconds"] == 3

        stopped = client.post("/api/combat/idle/stop/", {"hero_id": hero_id}, format="json")
        assert stopped.data == {"stopped": True}

    def test_collect_nothing(self, client, hero_id):
        response = client.post("/api/combat/idle/collect/", {"hero_id": hero_id}, format="json")
        assert response.data == {"gold": 0, "experience": 0, "materials": {}}


class TestArena:
    def test_battle_flow(self, client, hero_id, api_clock):
        opponent = client.get(f"/api/arena/opponent/{hero_id}/").data
        assert 0.1 <= opponent["win_chance"] <= 0.9

        started = client.post(
            "/api/arena/battle/", {"hero_id": hero_id, "opponent_id": opponent["id"]}, format="json"
        )
        assert started.status_code == 202
        assert started.data["status"] == "pending"
        assert started.data["result"] is None

        api_clock.advance(2)
        result = client.get(f"/api/arena/battle/{hero_id}/").data
        assert result["status"] == "resolved"
        assert isinstance(result["result"]["victory"], bool)
        assert ArenaBattleRecord.objects.filter(hero_id=hero_id).count() == 1

    def test_leaderboard(self, client, hero_id):
        board = client.get("/api/arena/leaderboard/").data
        assert any(entry["id"] == hero_id for entry in board)
        ranks = [entry["rank"] for entry in board]
        assert ranks == sorted(ranks)


class TestWorkshop:
    def test_craft_twice_names_short_resource(self, client, hero_id):
        first = client.post("/api/workshop/craft/start/", {"hero_id": hero_id, "recipe_id": "iron_sword"}, format="json")
        assert first.status_code == 201
        assert first.data["gold"] == 0

        second = client.post("/api/workshop/craft/start/", {"hero_id": hero_id, "recipe_id": "iron_sword"}, format="json")
        assert second.status_code == 400
        assert second.data["code"] == "insufficient_resource"
        assert second.data["details"]["resource"] == "gold"

    def test_finish_too_early_then_equip(self, client, hero_id, api_clock):
        job = client.post(
            "/api/workshop/craft/start/", {"hero_id": hero_id, "recipe_id": "iron_sword"}, format="json"
        ).data["crafting_item"]

        early = client.post("/api/workshop/craft/finish/", {"hero_id": hero_id, "crafting_id": job["id"]}, format="json")
        assert early.status_code == 409

        api_clock.advance(30)
        finished = client.post("/api/workshop/craft/finish/", {"hero_id": hero_id, "crafting_id": job["id"]}, format="json")
        assert finished.status_code == 200
        item = finished.data["equipment"]

        equipped = client.post("/api/equipment/equip/", {"hero_id": hero_id, "equipment_id": item["id"]}, format="json")
        assert equipped.data["hero"]["attack"] == 27

        unequipped = client.post("/api/equipment/unequip/", {"hero_id": hero_id, "slot": "weapon"}, format="json")
        assert unequipped.data["hero"]["attack"] == 15

    def test_unknown_recipe(self, client, hero_id):
        response = client.post("/api/workshop/craft/start/", {"hero_id": hero_id, "recipe_id": "nope"}, format="json")
        assert response.status_code == 404

    def test_materials_and_recipes(self, client, hero_id):
        materials = client.get(f"/api/workshop/materials/{hero_id}/").data
        assert materials["materials"]["ironOre"] == 10
        assert "iron_sword" in client.get("/api/workshop/recipes/").data


class TestOfflineAndShop:
    def test_short_absence(self, client, hero_id):
        response = client.post("/api/offline/calculate/", {"hero_id": hero_id}, format="json")
        assert response.status_code == 200
        assert response.data["rewards"] is None

    def test_claim_without_rewards(self, client, hero_id):
        response = client.post("/api/offline/claim/", {"hero_id": hero_id}, format="json")
        assert response.status_code == 409

    def test_shop(self, client, hero_id):
        assert "gold_bag" in client.get("/api/shop/").data

        response = client.post("/api/shop/buy/", {"hero_id": hero_id, "item_id": "honor_sword"}, format="json")
        assert response.status_code == 400
        assert response.data["details"]["resource"] == "honor"


def test_global_stats_and_health(client, hero_id):
    stats = client.get("/api/stats/global/").data
    assert stats["total_heroes"] == 1

    health = client.get("/api/health/")
    assert health.status_code == 200
    assert health.data["status"] == "ok"
