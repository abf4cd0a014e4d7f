# idlerealm/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # API del juego
    path("api/", include("game.urls")),
]
