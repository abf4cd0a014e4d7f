from django.urls import path
from .views import *

urlpatterns = [
    # Héroes
    path("heroes/", HeroCreateView.as_view(), name="hero_create"),
    path("heroes/<str:hero_id>/", HeroDetailView.as_view(), name="hero_detail"),

    # Combate idle
    path("combat/idle/start/", IdleStartView.as_view(), name="idle_start"),
    path("combat/idle/stop/", IdleStopView.as_view(), name="idle_stop"),
    path("combat/idle/collect/", IdleCollectView.as_view(), name="idle_collect"),
    path("combat/idle/<str:hero_id>/", IdleStateView.as_view(), name="idle_state"),

    # Arena
    path("arena/opponent/<str:hero_id>/", ArenaOpponentView.as_view(), name="arena_opponent"),
    path("arena/battle/", ArenaBattleView.as_view(), name="arena_battle"),
    path("arena/battle/<str:hero_id>/", ArenaBattleResultView.as_view(), name="arena_battle_result"),
    path("arena/leaderboard/", LeaderboardView.as_view(), name="arena_leaderboard"),

    # Taller / equipo
    path("workshop/recipes/", RecipesView.as_view(), name="workshop_recipes"),
    path("workshop/materials/<str:hero_id>/", MaterialsView.as_view(), name="workshop_materials"),
    path("workshop/craft/start/", CraftStartView.as_view(), name="craft_start"),
    path("workshop/craft/finish/", CraftFinishView.as_view(), name="craft_finish"),
    path("workshop/craft/skip/", CraftSkipView.as_view(), name="craft_skip"),
    path("equipment/enhance/", EnhanceView.as_view(), name="equipment_enhance"),
    path("equipment/equip/", EquipView.as_view(), name="equipment_equip"),
    path("equipment/unequip/", UnequipView.as_view(), name="equipment_unequip"),

    # Offline
    path("offline/calculate/", OfflineCalculateView.as_view(), name="offline_calculate"),
    path("offline/claim/", OfflineClaimView.as_view(), name="offline_claim"),
    path("offline/watch-ad/", WatchAdView.as_view(), name="offline_watch_ad"),
    path("offline/<str:hero_id>/", OfflineStateView.as_view(), name="offline_state"),

    # Tienda
    path("shop/", ShopView.as_view(), name="shop"),
    path("shop/buy/", ShopBuyView.as_view(), name="shop_buy"),

    # Estado
    path("stats/global/", GlobalStatsView.as_view(), name="global_stats"),
    path("health/", HealthView.as_view(), name="health"),
]
