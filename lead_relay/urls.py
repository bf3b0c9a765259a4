"""
URL configuration for lead_relay project.
"""
from django.contrib import admin
from django.urls import path, include

from leads.views import HealthView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health', HealthView.as_view(), name='health'),
    path('api/leads/', include('leads.urls')),
]
