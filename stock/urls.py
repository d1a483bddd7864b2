"""
Stock — URL Configuration

@file stock/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import StockMovementViewSet

app_name = 'stock'

router = SimpleRouter(trailing_slash=False)
router.register('stocks', StockMovementViewSet, basename='movement')

urlpatterns = [
    path('', include(router.urls)),
]
