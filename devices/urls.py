from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

# REST API Router
router = DefaultRouter()
router.register(r'devices', views.DeviceViewSet, basename='device-api')

app_name = 'devices'

urlpatterns = [
    path('devices/<path:serial>/history/', views.DeviceHistoryView.as_view(), name='device-history'),
    path('upload/', views.DeviceImportView.as_view(), name='device-import'),
    path('export/', views.DeviceExportView.as_view(), name='device-export'),

    path('', include(router.urls)),
]
