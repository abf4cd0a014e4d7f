"""
Crafting queue and equipment enhancement.

Each function validates everything first and only then mutates the hero.
"""
import time

from .balance import CRAFTING_RECIPES, ENHANCE_GAINS
from .exceptions import NotFound, PreconditionFailed
from .formulas import enhancement_cost, skip_cost
from .hero import CraftingItem, Equipment


def get_recipe(recipe_id: str):
    recipe = CRAFTING_RECIPES.get(recipe_id)
    if recipe is None:
        raise NotFound("Invalid recipe.", {"recipe_id": recipe_id})
    return recipe


def start_crafting(hero, recipe_id: str, now=None) -> CraftingItem:
    now = now if now is not None else time.time()
    recipe = get_recipe(recipe_id)

    hero.require_gold(recipe["gold_cost"])
    hero.require_materials(recipe["materials"])

    hero.spend_gold(recipe["gold_cost"], now)
    hero.spend_materials(recipe["materials"], now)
    job = CraftingItem(
        recipe_id=recipe_id,
        item_name=recipe["name"],
        started_at=now,
        completes_at=now + recipe["craft_time"],
    )
    hero.crafting_queue.append(job)
    return job


def finish_crafting(hero, crafting_id: str, now=None) -> Equipment:
    now = now if now is not None else time.time()
    job = hero.find_crafting(crafting_id)
    if not job.is_ready(now):
        raise PreconditionFailed(
            "Crafting not yet finished.",
            {"crafting_id": crafting_id, "seconds_remaining": round(job.seconds_remaining(now), 2)},
        )
    recipe = get_recipe(job.recipe_id)

    item = Equipment.create(recipe["name"], recipe["slot"], recipe["rarity"], recipe["stats"], now)
    hero.crafting_queue = [j for j in hero.crafting_queue if j.id != crafting_id]
    hero.add_equipment(item, now)
    return item


def skip_crafting(hero, crafting_id: str, now=None) -> int:
    """Pay 10 gold per remaining second to make the job finishable now. Returns the cost."""
    now = now if now is not None else time.time()
    job = hero.find_crafting(crafting_id)
    cost = skip_cost(job.seconds_remaining(now))
    hero.require_gold(cost)

    hero.spend_gold(cost, now)
    job.completes_at = min(job.completes_at, now)
    return cost


def enhance_equipment(hero, equipment_id: str, now=None):
    """Enhance an inventory or equipped item by one level. Returns ``(item, cost)``."""
    now = now if now is not None else time.time()
    item, _slot = hero.find_equipment(equipment_id)
    cost = enhancement_cost(item.enhance_level)
    hero.require_gold(cost)

    hero.spend_gold(cost, now)
    item.enhance_level += 1
    item.attack += ENHANCE_GAINS["attack"]
    item.defense += ENHANCE_GAINS["defense"]
    item.health += ENHANCE_GAINS["health"]
    return item, cost
