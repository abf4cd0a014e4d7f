"""
Hero stores: where the services load heroes from and save them back to.

Every store hands out detached ``Hero`` objects. Changes only become visible
to other readers once ``save`` is called, so an operation that raises before
saving leaves the stored hero untouched.
"""
import copy
from contextlib import nullcontext

from django.db import transaction

from .models import ArenaBattleRecord, HeroRecord


class MemoryHeroStore:
    """In-process store used by tests and by the engine without a database."""

    def __init__(self):
        self._heroes = {}
        self.battles = []

    def atomic(self):
        return nullcontext()

    def get(self, hero_id, for_update=False):
        hero = self._heroes.get(hero_id)
        return copy.deepcopy(hero) if hero is not None else None

    def add(self, hero):
        self._heroes[hero.id] = copy.deepcopy(hero)
        return hero

    def save(self, hero):
        self._heroes[hero.id] = copy.deepcopy(hero)

    def all(self):
        return [copy.deepcopy(h) for h in self._heroes.values()]

    def count(self):
        return len(self._heroes)

    def record_battle(self, hero_id, result):
        self.battles.append((hero_id, result))

    def battle_count(self):
        return len(self.battles)


class DjangoHeroStore:
    """Store backed by ``HeroRecord`` rows; heroes are locked with SELECT ... FOR UPDATE."""

    def atomic(self):
        return transaction.atomic()

    def get(self, hero_id, for_update=False):
        qs = HeroRecord.objects.all()
        if for_update:
            qs = qs.select_for_update()
        record = qs.filter(id=hero_id).first()
        return record.to_hero() if record is not None else None

    def add(self, hero):
        HeroRecord.from_hero(hero).save(force_insert=True)
        return hero

    def save(self, hero):
        record = HeroRecord.from_hero(hero)
        record.save(force_update=True)

    def all(self):
        return [record.to_hero() for record in HeroRecord.objects.all()]

    def count(self):
        return HeroRecord.objects.count()

    def record_battle(self, hero_id, result):
        ArenaBattleRecord.objects.create(
            hero_id=hero_id,
            opponent_name=result.opponent.name,
            opponent_rank=result.opponent.rank,
            opponent_level=result.opponent.level,
            player_power=result.player_power,
            opponent_power=result.opponent_power,
            victory=result.victory,
            honor_gained=result.honor_gained,
            rank_change=result.rank_change,
            experience_gained=result.experience_gained,
        )

    def battle_count(self):
        return ArenaBattleRecord.objects.count()
