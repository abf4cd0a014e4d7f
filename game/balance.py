"""
Central place for balance constants and simple helpers.
Tweak values here to adjust hero, enemy, arena, crafting and shop scaling.
"""

# Hero classes base stats
HERO_CLASSES = {
    "Warrior": {"attack": 15, "defense": 10, "health": 120},
    "Guardian": {"attack": 10, "defense": 15, "health": 150},
    "Mage": {"attack": 18, "defense": 8, "health": 100},
}

HERO_NAME_MAX_LENGTH = 20

# Per-level gains (same for every class)
LEVEL_GAINS = {"attack": 3, "defense": 2, "health": 10}

# XP curve: level * 100
XP_PER_LEVEL = 100

STARTING_GOLD = 100
STARTING_ARENA_RANK = 5000

# Materials (starter kit)
STARTER_MATERIALS = {
    "ironOre": 10,
    "leather": 8,
    "cloth": 5,
    "wood": 12,
    "crystals": 2,
    "gems": 1,
}

# ==========================
# Idle combat
# ==========================

COMBAT_INTERVAL_SECONDS = 3
RECOVERY_SECONDS = 5
COMBAT_LOG_SIZE = 50

ENEMY_ARCHETYPES = [
    {"name": "Goblin", "type": "Monster", "multiplier": 0.8},
    {"name": "Orc", "type": "Monster", "multiplier": 1.0},
    {"name": "Skeleton", "type": "Undead", "multiplier": 0.9},
    {"name": "Wolf", "type": "Beast", "multiplier": 0.7},
    {"name": "Bandit", "type": "Human", "multiplier": 1.1},
    {"name": "Troll", "type": "Monster", "multiplier": 1.3},
    {"name": "Dark Mage", "type": "Magic", "multiplier": 1.2},
]

# Enemy stats before the archetype multiplier: base + per_level * level
ENEMY_BASE_STATS = {"health": 80, "attack": 8, "defense": 5}
ENEMY_LEVEL_GROWTH = {"health": 15, "attack": 2, "defense": 1}
ENEMY_LEVEL_VARIANCE = 1

ENEMY_REWARD_GOLD = 10
ENEMY_REWARD_EXPERIENCE = 10
ENEMY_DROP_CHANCE = 0.30
ENEMY_DROP_MATERIALS = ["ironOre", "leather", "cloth", "wood"]

# Round action odds
HERO_ATTACK_CHANCE = 0.70
HERO_DEFEND_CHANCE = 0.15  # the remaining 0.15 is evade
HERO_CRIT_CHANCE = 0.10
HERO_CRIT_MULTIPLIER = 1.5
EVADE_SUCCESS_CHANCE = 0.30
DEFEND_DAMAGE_FACTOR = 0.5

ENEMY_ATTACK_CHANCE = 0.75
ENEMY_CRIT_CHANCE = 0.05
ENEMY_CRIT_MULTIPLIER = 1.3

DAMAGE_RANDOMNESS = 0.2

# ==========================
# Offline rewards
# ==========================

MAX_OFFLINE_SECONDS = 8 * 3600
MIN_OFFLINE_SECONDS = 5 * 60

OFFLINE_GOLD_PER_HOUR = (30, 8)  # base, per level
OFFLINE_EXP_PER_HOUR = (60, 15)

OFFLINE_FULL_EFFICIENCY_HOURS = 2
OFFLINE_EFFICIENCY_DECAY = 0.1  # per hour beyond the full-efficiency window
OFFLINE_MIN_EFFICIENCY = 0.3

# material: (base chance, base amount per hour)
OFFLINE_MATERIALS = {
    "ironOre": (0.4, 2),
    "leather": (0.4, 2),
    "cloth": (0.4, 2),
    "wood": (0.4, 2),
    "crystals": (0.2, 1),
}
OFFLINE_MATERIAL_CHANCE_PER_HOUR = 0.1
OFFLINE_MATERIAL_MAX_CHANCE = 0.8

AD_BONUS_MULTIPLIER = 2.0
AD_SIMULATED_SECONDS = 1
ACTIVITY_REFRESH_SECONDS = 30

# ==========================
# Arena
# ==========================

ARENA_BATTLE_DELAY_SECONDS = 2
ARENA_RANK_VARIANCE = 0.1
ARENA_MIN_RANK_VARIANCE = 100
ARENA_LEVEL_VARIANCE = 2
ARENA_RANK_BONUS_CEILING = 5000  # opponents ranked better than this get a bonus
ARENA_MAX_RANK_BONUS = 0.5
ARENA_MAX_RANK_LOSS = 10

OPPONENT_NAMES = [
    "Shadow Warrior", "Iron Knight", "Flame Mage", "Storm Guardian",
    "Crystal Hunter", "Dark Paladin", "Wind Assassin", "Earth Shaman",
    "Lightning Archer", "Frost Berserker", "Void Sorcerer", "Blood Champion",
]

LEADERBOARD_SIZE = 20
LEADERBOARD_REFRESH_SECONDS = 30
LEADERBOARD_NAMES = [
    "DragonSlayer", "ShadowMaster", "IronLord", "StormKing", "FlameEmperor",
    "CrystalGuard", "VoidHunter", "ThunderGod", "FrostQueen", "BloodKnight",
]

# ==========================
# Equipment
# ==========================

EQUIPMENT_SLOTS = ["weapon", "armor", "shield"]

# Ordered from worst to best
RARITIES = ["Common", "Rare", "Epic", "Legendary"]

RARITY_SELL_MULTIPLIER = {
    "Common": 0.3,
    "Rare": 0.4,
    "Epic": 0.5,
    "Legendary": 0.6,
}

RARITY_BASE_VALUE = {
    "Common": 100,
    "Rare": 250,
    "Epic": 500,
    "Legendary": 1000,
}

ENHANCE_MAX_LEVEL = 10
ENHANCE_COST_PER_LEVEL = 100
ENHANCE_GAINS = {"attack": 2, "defense": 2, "health": 5}

SKIP_COST_PER_SECOND = 10

CRAFTING_RECIPES = {
    # Weapons
    "iron_sword": {
        "name": "Iron Sword",
        "slot": "weapon",
        "rarity": "Common",
        "craft_time": 30,
        "gold_cost": 100,
        "materials": {"ironOre": 3, "wood": 1},
        "stats": {"attack": 12, "defense": 0, "health": 0},
    },
    "steel_blade": {
        "name": "Steel Blade",
        "slot": "weapon",
        "rarity": "Rare",
        "craft_time": 60,
        "gold_cost": 250,
        "materials": {"ironOre": 5, "crystals": 1},
        "stats": {"attack": 20, "defense": 2, "health": 0},
    },
    "enchanted_sword": {
        "name": "Enchanted Sword",
        "slot": "weapon",
        "rarity": "Epic",
        "craft_time": 120,
        "gold_cost": 500,
        "materials": {"ironOre": 8, "crystals": 3, "gems": 1},
        "stats": {"attack": 35, "defense": 5, "health": 10},
    },
    # Armor
    "leather_armor": {
        "name": "Leather Armor",
        "slot": "armor",
        "rarity": "Common",
        "craft_time": 45,
        "gold_cost": 80,
        "materials": {"leather": 4, "cloth": 2},
        "stats": {"attack": 0, "defense": 8, "health": 20},
    },
    "chain_mail": {
        "name": "Chain Mail",
        "slot": "armor",
        "rarity": "Rare",
        "craft_time": 90,
        "gold_cost": 200,
        "materials": {"ironOre": 6, "leather": 2},
        "stats": {"attack": 2, "defense": 15, "health": 35},
    },
    "plate_armor": {
        "name": "Plate Armor",
        "slot": "armor",
        "rarity": "Epic",
        "craft_time": 180,
        "gold_cost": 450,
        "materials": {"ironOre": 10, "crystals": 2, "leather": 3},
        "stats": {"attack": 5, "defense": 25, "health": 60},
    },
    # Shields
    "wooden_shield": {
        "name": "Wooden Shield",
        "slot": "shield",
        "rarity": "Common",
        "craft_time": 20,
        "gold_cost": 60,
        "materials": {"wood": 3, "leather": 1},
        "stats": {"attack": 0, "defense": 6, "health": 15},
    },
    "iron_shield": {
        "name": "Iron Shield",
        "slot": "shield",
        "rarity": "Rare",
        "craft_time": 75,
        "gold_cost": 180,
        "materials": {"ironOre": 4, "wood": 2},
        "stats": {"attack": 1, "defense": 12, "health": 25},
    },
    "crystal_shield": {
        "name": "Crystal Shield",
        "slot": "shield",
        "rarity": "Epic",
        "craft_time": 150,
        "gold_cost": 400,
        "materials": {"crystals": 4, "ironOre": 3, "gems": 1},
        "stats": {"attack": 3, "defense": 20, "health": 40},
    },
}

# ==========================
# Shop
# ==========================

# currency: "honor" (honor shop) or "gold" (arena shop)
# type: "equipment", "materials" or "gold"
SHOP_ITEMS = {
    "honor_sword": {
        "name": "Honor Blade",
        "currency": "honor",
        "type": "equipment",
        "cost": 500,
        "slot": "weapon",
        "rarity": "Legendary",
        "stats": {"attack": 50, "defense": 8, "health": 20},
    },
    "honor_armor": {
        "name": "Champion's Plate",
        "currency": "honor",
        "type": "equipment",
        "cost": 750,
        "slot": "armor",
        "rarity": "Legendary",
        "stats": {"attack": 8, "defense": 40, "health": 100},
    },
    "rare_materials": {
        "name": "Rare Material Pack",
        "currency": "honor",
        "type": "materials",
        "cost": 200,
        "materials": {"crystals": 5, "gems": 3, "ironOre": 10},
    },
    "gold_bag": {
        "name": "Bag of Gold",
        "currency": "honor",
        "type": "gold",
        "cost": 100,
        "amount": 1000,
    },
    "enhancement_stones": {
        "name": "Enhancement Stones",
        "currency": "honor",
        "type": "materials",
        "cost": 300,
        "materials": {"gems": 10, "crystals": 15},
    },
    "gladiator_shield": {
        "name": "Gladiator Shield",
        "currency": "gold",
        "type": "equipment",
        "cost": 1500,
        "slot": "shield",
        "rarity": "Rare",
        "stats": {"attack": 2, "defense": 14, "health": 30},
    },
    "supply_crate": {
        "name": "Supply Crate",
        "currency": "gold",
        "type": "materials",
        "cost": 250,
        "materials": {"ironOre": 5, "leather": 5, "cloth": 5, "wood": 5},
    },
}


def exp_to_next_level(level: int) -> int:
    return level * XP_PER_LEVEL


def class_base_stats(hero_class: str):
    base = HERO_CLASSES.get(hero_class)
    if not base:
        raise ValueError(f"Unknown hero class '{hero_class}'")
    return base.copy()
