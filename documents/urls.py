"""
Documents — URL Configuration

@file documents/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import DocumentViewSet

app_name = 'documents'

router = SimpleRouter(trailing_slash=False)
router.register('documentos', DocumentViewSet, basename='document')

urlpatterns = [
    path('', include(router.urls)),
]
