from rest_framework import serializers

from .balance import EQUIPMENT_SLOTS, HERO_NAME_MAX_LENGTH
from .formulas import sell_value
from .models import HeroClass

# ==========================
# HERO
# ==========================


class EquipmentSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    slot = serializers.CharField()
    rarity = serializers.CharField()
    enhance_level = serializers.IntegerField()
    attack = serializers.IntegerField()
    defense = serializers.IntegerField()
    health = serializers.IntegerField()
    acquired_at = serializers.FloatField()
    # 👉 precio de venta (informativo)
    sell_value = serializers.SerializerMethodField()

    def get_sell_value(self, obj):
        return sell_value(obj.rarity, obj.enhance_level)


class CraftingItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    recipe_id = serializers.CharField()
    item_name = serializers.CharField()
    started_at = serializers.FloatField()
    completes_at = serializers.FloatField()


class IdleStatsSerializer(serializers.Serializer):
    enemies_defeated = serializers.IntegerField()
    total_idle_seconds = serializers.IntegerField()
    total_experience = serializers.IntegerField()
    total_gold = serializers.IntegerField()
    pending_gold = serializers.IntegerField()
    pending_experience = serializers.IntegerField()
    pending_materials = serializers.DictField(child=serializers.IntegerField())


class HeroSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    hero_class = serializers.CharField()
    level = serializers.IntegerField()
    experience = serializers.IntegerField()
    experience_to_next = serializers.IntegerField()
    skill_points = serializers.IntegerField()
    attack = serializers.IntegerField()
    defense = serializers.IntegerField()
    max_health = serializers.IntegerField()
    current_health = serializers.IntegerField()
    base_attack = serializers.IntegerField()
    base_defense = serializers.IntegerField()
    base_max_health = serializers.IntegerField()
    gold = serializers.IntegerField()
    honor_points = serializers.IntegerField()
    arena_rank = serializers.IntegerField()
    inventory = EquipmentSerializer(many=True)
    equipped = serializers.SerializerMethodField()
    materials = serializers.DictField(child=serializers.IntegerField())
    crafting_queue = CraftingItemSerializer(many=True)
    idle_stats = IdleStatsSerializer()
    created_at = serializers.FloatField()
    last_active = serializers.FloatField()

    def get_equipped(self, obj):
        return {slot: EquipmentSerializer(item).data for slot, item in obj.equipped.items()}


class HeroCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=HERO_NAME_MAX_LENGTH, trim_whitespace=True)
    hero_class = serializers.ChoiceField(choices=HeroClass.choices)


class HeroUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=HERO_NAME_MAX_LENGTH, required=False)
    level = serializers.IntegerField(min_value=1, required=False)
    experience = serializers.IntegerField(min_value=0, required=False)
    gold = serializers.IntegerField(min_value=0, required=False)
    current_health = serializers.IntegerField(min_value=0, required=False)
    skill_points = serializers.IntegerField(min_value=0, required=False)


# ==========================
# COMBATE IDLE
# ==========================

class EnemySerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    level = serializers.IntegerField()
    enemy_type = serializers.CharField()
    max_health = serializers.IntegerField()
    current_health = serializers.IntegerField()
    attack = serializers.IntegerField()
    defense = serializers.IntegerField()
    rewards = serializers.DictField()


class CombatLogEntrySerializer(serializers.Serializer):
    id = serializers.CharField()
    kind = serializers.CharField()
    message = serializers.CharField()
    timestamp = serializers.FloatField()


class CombatStateSerializer(serializers.Serializer):
    active = serializers.BooleanField()
    recovering = serializers.BooleanField()
    enemy = EnemySerializer(allow_null=True)
    log = CombatLogEntrySerializer(many=True)
    idle_stats = IdleStatsSerializer()
    current_health = serializers.IntegerField()
    max_health = serializers.IntegerField()


class RewardsSerializer(serializers.Serializer):
    gold = serializers.IntegerField()
    experience = serializers.IntegerField()
    materials = serializers.DictField(child=serializers.IntegerField())


# ==========================
# ARENA
# ==========================

class OpponentSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    level = serializers.IntegerField()
    hero_class = serializers.CharField()
    rank = serializers.IntegerField()
    attack = serializers.IntegerField()
    defense = serializers.IntegerField()
    health = serializers.IntegerField()
    power = serializers.FloatField()


class BattleResultSerializer(serializers.Serializer):
    victory = serializers.BooleanField()
    honor_gained = serializers.IntegerField()
    rank_change = serializers.IntegerField()
    experience_gained = serializers.IntegerField()
    player_power = serializers.FloatField()
    opponent_power = serializers.FloatField()


class ArenaBattleSerializer(serializers.Serializer):
    id = serializers.CharField()
    hero_id = serializers.CharField()
    status = serializers.CharField()
    started_at = serializers.FloatField()
    resolves_at = serializers.FloatField()
    opponent = OpponentSerializer()
    result = BattleResultSerializer(allow_null=True)


class BattleStartSerializer(serializers.Serializer):
    hero_id = serializers.CharField()
    opponent_id = serializers.CharField()


class LeaderboardEntrySerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    level = serializers.IntegerField()
    rank = serializers.IntegerField()
    honor = serializers.IntegerField()
    synthetic = serializers.BooleanField()


# ==========================
# TALLER / EQUIPO / TIENDA
# ==========================

class HeroActionSerializer(serializers.Serializer):
    hero_id = serializers.CharField()


class CraftStartSerializer(HeroActionSerializer):
    recipe_id = serializers.CharField()


class CraftingActionSerializer(HeroActionSerializer):
    crafting_id = serializers.CharField()


class EquipmentActionSerializer(HeroActionSerializer):
    equipment_id = serializers.CharField()


class UnequipSerializer(HeroActionSerializer):
    slot = serializers.ChoiceField(choices=EQUIPMENT_SLOTS)


class BuySerializer(HeroActionSerializer):
    item_id = serializers.CharField()


# ==========================
# OFFLINE
# ==========================

class OfflineRewardsSerializer(serializers.Serializer):
    offline_seconds = serializers.IntegerField()
    gold = serializers.IntegerField()
    experience = serializers.IntegerField()
    materials = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)
    efficiency = serializers.FloatField(required=False, default=1.0)


class OfflineCalculateSerializer(HeroActionSerializer):
    last_active = serializers.FloatField(required=False)


class OfflineClaimSerializer(HeroActionSerializer):
    rewards = OfflineRewardsSerializer(required=False)
    use_bonus = serializers.BooleanField(required=False, default=False)
