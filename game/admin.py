from django.contrib import admin
from .models import ArenaBattleRecord, HeroRecord


@admin.register(HeroRecord)
class HeroRecordAdmin(admin.ModelAdmin):
    list_display = ("name", "hero_class", "level", "gold", "honor_points", "arena_rank", "last_active")
    list_filter = ("hero_class",)
    search_fields = ("name", "id")


@admin.register(ArenaBattleRecord)
class ArenaBattleRecordAdmin(admin.ModelAdmin):
    list_display = ("hero", "opponent_name", "victory", "rank_change", "honor_gained", "created_at")
    list_filter = ("victory",)
