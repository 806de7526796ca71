"""
URL patterns for the ELD app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .models import PROVIDER_SAMSARA, PROVIDER_KEEPTRUCKIN, PROVIDER_GEOTAB
from . import views

router = DefaultRouter()
router.register(r'devices', views.ELDDeviceViewSet, basename='eld-device')
router.register(r'driver-mappings', views.DriverMappingViewSet, basename='eld-driver-mapping')
router.register(r'logs', views.DutyStatusLogViewSet, basename='eld-log')
router.register(r'events', views.ComplianceEventViewSet, basename='eld-event')

app_name = 'eld'

urlpatterns = [
    path('', include(router.urls)),

    # Hardware provider webhooks
    path('webhooks/samsara/', views.ProviderWebhookView.as_view(provider=PROVIDER_SAMSARA), name='webhook_samsara'),
    path('webhooks/keeptruckin/', views.ProviderWebhookView.as_view(provider=PROVIDER_KEEPTRUCKIN), name='webhook_keeptruckin'),
    path('webhooks/geotab/', views.ProviderWebhookView.as_view(provider=PROVIDER_GEOTAB), name='webhook_geotab'),

    # Mobile app
    path('mobile/register/', views.MobileRegisterView.as_view(), name='mobile_register'),
    path('mobile/locations/', views.MobileLocationSyncView.as_view(), name='mobile_locations'),
    path('mobile/logs/', views.MobileLogSyncView.as_view(), name='mobile_logs'),
    path('mobile/events/', views.MobileEventSyncView.as_view(), name='mobile_events'),

    # Hours of Service
    path('drivers/<int:driver_id>/hos/', views.DriverHOSView.as_view(), name='driver_hos'),
    path('hos/', views.HOSOverviewView.as_view(), name='hos_overview'),
]
