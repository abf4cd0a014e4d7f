"""
Honor shop and arena (gold) shop.
"""
import time

from .balance import SHOP_ITEMS
from .exceptions import NotFound
from .hero import Equipment


def get_item(item_id: str):
    item = SHOP_ITEMS.get(item_id)
    if item is None:
        raise NotFound("Item not found in shop.", {"item_id": item_id})
    return item


def buy(hero, item_id: str, now=None):
    """
    Pay for a shop item in its currency and deliver it. Returns a dict with
    the cost, currency and whatever was granted.
    """
    now = now if now is not None else time.time()
    item = get_item(item_id)
    cost = item["cost"]

    if item["currency"] == "honor":
        hero.require_honor(cost)
        hero.spend_honor(cost, now)
    else:
        hero.require_gold(cost)
        hero.spend_gold(cost, now)

    result = {"item_id": item_id, "cost": cost, "currency": item["currency"]}
    if item["type"] == "equipment":
        equipment = Equipment.create(item["name"], item["slot"], item["rarity"], item["stats"], now)
        hero.add_equipment(equipment, now)
        result["equipment"] = equipment
    elif item["type"] == "materials":
        hero.add_materials(item["materials"], now)
        result["materials"] = dict(item["materials"])
    elif item["type"] == "gold":
        hero.gain_gold(item["amount"], now)
        result["gold"] = item["amount"]
    return result
