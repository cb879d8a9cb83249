"""
DOMICILIOS Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.health import health_check, readiness_check


# ===========================================
# ADMIN SITE CUSTOMIZATION
# ===========================================
admin.site.site_header = "DOMICILIOS Back-office"
admin.site.site_title = "DOMICILIOS Admin"
admin.site.index_title = "Operación de domicilios"


@api_view(['GET'])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'DOMICILIOS API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
            },
            'users': '/api/users/',
            'orders': '/api/orders/',
            'balances': '/api/balances/',
            'deposits': '/api/deposits/',
            'alerts': '/api/alerts/',
            'shopify': {
                'import': '/api/integrations/shopify/import/',
                'sync': '/api/integrations/shopify/sync/',
                'diagnostics': '/api/integrations/shopify/diagnostics/',
            },
        }
    })


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Health
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='health-ready'),

    # API Root
    path('api/', api_root, name='api-root'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/', include('logistics.urls')),
    path('api/', include('finance.urls')),
    path('api/', include('alerts.urls')),
    path('api/integrations/', include('integrations.urls')),

    # API schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
