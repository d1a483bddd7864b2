"""
Distribuidora — Root URL Configuration

All API endpoints are namespaced under /api/v1/.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

admin.site.site_header = 'Distribuidora Administration'
admin.site.site_title = 'Distribuidora'
admin.site.index_title = 'Inventory documents and orders'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """Distribuidora API v1 — endpoint directory."""
    return Response({
        'auth': {
            'token': reverse('api-v1:token-obtain', request=request, format=format),
            'refresh': reverse('api-v1:token-refresh', request=request, format=format),
        },
        'documentos': {
            'list': reverse('api-v1:documents:document-list', request=request, format=format),
            'siguiente': reverse('api-v1:documents:document-next-number', request=request, format=format),
        },
        'comandas': reverse('api-v1:orders:order-list', request=request, format=format),
        'stocks': {
            'list': reverse('api-v1:stock:movement-list', request=request, format=format),
            'saldo': reverse('api-v1:stock:movement-balance', request=request, format=format),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/token', TokenObtainPairView.as_view(), name='token-obtain'),
    path('auth/token/refresh', TokenRefreshView.as_view(), name='token-refresh'),
    path('', include('documents.urls', namespace='documents')),
    path('', include('orders.urls', namespace='orders')),
    path('', include('stock.urls', namespace='stock')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
