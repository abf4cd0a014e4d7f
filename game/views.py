import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import GameError, InsufficientResource, InvalidArgument, NotFound, PreconditionFailed
from .serializers import (
    ArenaBattleSerializer,
    BattleStartSerializer,
    BuySerializer,
    CombatStateSerializer,
    CraftStartSerializer,
    CraftingActionSerializer,
    CraftingItemSerializer,
    EnemySerializer,
    EquipmentActionSerializer,
    EquipmentSerializer,
    HeroActionSerializer,
    HeroCreateSerializer,
    HeroSerializer,
    HeroUpdateSerializer,
    LeaderboardEntrySerializer,
    OfflineCalculateSerializer,
    OfflineClaimSerializer,
    OfflineRewardsSerializer,
    OpponentSerializer,
    RewardsSerializer,
    UnequipSerializer,
)
from .services import get_game

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    InsufficientResource: status.HTTP_400_BAD_REQUEST,
    PreconditionFailed: status.HTTP_409_CONFLICT,
}


# ==========================
# Base
# ==========================

class GameAPIView(APIView):
    """
    Base view: pumps the scheduler before every request and turns
    ``GameError`` into ``{"error", "code", "details"}`` responses.
    """
    permission_classes = [permissions.AllowAny]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.game = get_game()
        self.game.pump()

    def handle_exception(self, exc):
        if isinstance(exc, GameError):
            code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
            logger.info("%s %s rejected: %s (%s)", self.request.method, self.request.path, exc.message, exc.code)
            return Response(exc.to_dict(), status=code)
        return super().handle_exception(exc)

    def validated(self, serializer_class, data):
        serializer = serializer_class(data=data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


# ==========================
# Héroes
# ==========================

class HeroCreateView(GameAPIView):
    def post(self, request):
        data = self.validated(HeroCreateSerializer, request.data)
        hero = self.game.heroes.create(data["name"], data["hero_class"])
        return Response(HeroSerializer(hero).data, status=status.HTTP_201_CREATED)


class HeroDetailView(GameAPIView):
    def get(self, request, hero_id):
        hero = self.game.heroes.get(hero_id)
        if hero is None:
            raise NotFound("Hero not found.", {"hero_id": hero_id})
        return Response(HeroSerializer(hero).data)

    def patch(self, request, hero_id):
        unknown = sorted(set(request.data) - set(HeroUpdateSerializer().fields))
        if unknown:
            raise InvalidArgument("These fields cannot be updated.", {"fields": unknown})
        data = self.validated(HeroUpdateSerializer, request.data)
        hero = self.game.heroes.update(hero_id, dict(data))
        return Response(HeroSerializer(hero).data)


# ==========================
# Combate idle
# ==========================

class IdleStartView(GameAPIView):
    def post(self, request):
        data = self.validated(HeroActionSerializer, request.data)
        started = self.game.combat.start(data["hero_id"])
        return Response({
            "message": "Idle combat started.",
            "enemy": EnemySerializer(started["enemy"]).data,
            "interval_seconds": self.game.combat_interval,
        })


class IdleStopView(GameAPIView):
    def post(self, request):
        data = self.validated(HeroActionSerializer, request.data)
        stopped = self.game.combat.stop(data["hero_id"])
        return Response(stopped)


class IdleCollectView(GameAPIView):
    def post(self, request):
        data = self.validated(HeroActionSerializer, request.data)
        rewards = self.game.combat.collect(data["hero_id"])
        return Response(RewardsSerializer(rewards).data)


class IdleStateView(GameAPIView):
    def get(self, request, hero_id):
        return Response(CombatStateSerializer(self.game.combat.state(hero_id)).data)


# ==========================
# Arena
# ==========================

class ArenaOpponentView(GameAPIView):
    def get(self, request, hero_id):
        opponent, win_chance = self.game.arena.find_opponent(hero_id)
        data = OpponentSerializer(opponent).data
        data["win_chance"] = round(win_chance, 3)
        return Response(data)


class ArenaBattleView(GameAPIView):
    def post(self, request):
        data = self.validated(BattleStartSerializer, request.data)
        battle = self.game.arena.start_battle(data["hero_id"], data["opponent_id"])
        return Response(ArenaBattleSerializer(battle).data, status=status.HTTP_202_ACCEPTED)


class ArenaBattleResultView(GameAPIView):
    def get(self, request, hero_id):
        return Response(ArenaBattleSerializer(self.game.arena.result(hero_id)).data)


class LeaderboardView(GameAPIView):
    def get(self, request):
        return Response(LeaderboardEntrySerializer(self.game.arena.leaderboard(), many=True).data)


# ==========================
# Taller / equipo
# ==========================

class RecipesView(GameAPIView):
    def get(self, request):
        return Response(self.game.workshop.recipes())


class MaterialsView(GameAPIView):
    def get(self, request, hero_id):
        data = self.game.workshop.materials(hero_id)
        return Response({
            "materials": data["materials"],
            "crafting_queue": CraftingItemSerializer(data["crafting_queue"], many=True).data,
        })


class CraftStartView(GameAPIView):
    def post(self, request):
        data = self.validated(CraftStartSerializer, request.data)
        result = self.game.workshop.craft(data["hero_id"], data["recipe_id"])
        return Response({
            "crafting_item": CraftingItemSerializer(result["crafting_item"]).data,
            "gold": result["gold"],
            "materials": result["materials"],
        }, status=status.HTTP_201_CREATED)


class CraftFinishView(GameAPIView):
    def post(self, request):
        data = self.validated(CraftingActionSerializer, request.data)
        result = self.game.workshop.finish(data["hero_id"], data["crafting_id"])
        return Response({"equipment": EquipmentSerializer(result["equipment"]).data})


class CraftSkipView(GameAPIView):
    def post(self, request):
        data = self.validated(CraftingActionSerializer, request.data)
        return Response(self.game.workshop.skip(data["hero_id"], data["crafting_id"]))


class EnhanceView(GameAPIView):
    def post(self, request):
        data = self.validated(EquipmentActionSerializer, request.data)
        result = self.game.workshop.enhance(data["hero_id"], data["equipment_id"])
        return Response({
            "equipment": EquipmentSerializer(result["equipment"]).data,
            "cost": result["cost"],
            "gold": result["gold"],
        })


class EquipView(GameAPIView):
    def post(self, request):
        data = self.validated(EquipmentActionSerializer, request.data)
        result = self.game.workshop.equip(data["hero_id"], data["equipment_id"])
        unequipped = result["unequipped"]
        return Response({
            "equipped": EquipmentSerializer(result["equipped"]).data,
            "unequipped": EquipmentSerializer(unequipped).data if unequipped else None,
            "hero": HeroSerializer(result["hero"]).data,
        })


class UnequipView(GameAPIView):
    def post(self, request):
        data = self.validated(UnequipSerializer, request.data)
        result = self.game.workshop.unequip(data["hero_id"], data["slot"])
        return Response({
            "unequipped": EquipmentSerializer(result["unequipped"]).data,
            "hero": HeroSerializer(result["hero"]).data,
        })


# ==========================
# Offline
# ==========================

class OfflineCalculateView(GameAPIView):
    def post(self, request):
        data = self.validated(OfflineCalculateSerializer, request.data)
        rewards = self.game.offline.calculate(data["hero_id"], data.get("last_active"))
        if rewards is None:
            return Response({"rewards": None, "message": "Not away long enough for offline rewards."})
        return Response({"rewards": OfflineRewardsSerializer(rewards).data})


class OfflineClaimView(GameAPIView):
    def post(self, request):
        data = self.validated(OfflineClaimSerializer, request.data)
        result = self.game.offline.claim(data["hero_id"], data.get("rewards"), data["use_bonus"])
        return Response(result)


class WatchAdView(GameAPIView):
    def post(self, request):
        data = self.validated(HeroActionSerializer, request.data)
        return Response(self.game.offline.watch_ad(data["hero_id"]), status=status.HTTP_202_ACCEPTED)


class OfflineStateView(GameAPIView):
    def get(self, request, hero_id):
        state = self.game.offline.state(hero_id)
        pending = state["pending"]
        return Response({
            "pending": OfflineRewardsSerializer(pending).data if pending else None,
            "ad_playing": state["ad_playing"],
            "last_claim": state["last_claim"],
        })


# ==========================
# Tienda
# ==========================

class ShopView(GameAPIView):
    def get(self, request):
        return Response(self.game.shop.items())


class ShopBuyView(GameAPIView):
    def post(self, request):
        data = self.validated(BuySerializer, request.data)
        result = self.game.shop.buy(data["hero_id"], data["item_id"])
        if "equipment" in result:
            result["equipment"] = EquipmentSerializer(result["equipment"]).data
        return Response(result)


# ==========================
# Estado global
# ==========================

class GlobalStatsView(GameAPIView):
    def get(self, request):
        return Response(self.game.global_stats())


class HealthView(GameAPIView):
    def get(self, request):
        return Response({"status": "ok", "scheduled_tasks": len(self.game.scheduler)})
