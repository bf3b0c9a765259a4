"""
URL configuration for leads app.
"""
from django.urls import path
from leads.views import (
    BulkForwardView,
    LeadDetailView,
    LeadIntakeView,
    LeadListView,
    LeadRetryView,
    LeadStatsView,
    LeadStatusView,
)

urlpatterns = [
    path('', LeadIntakeView.as_view(), name='lead-intake'),
    path('list', LeadListView.as_view(), name='lead-list'),
    path('stats', LeadStatsView.as_view(), name='lead-stats'),
    path('bulk-forward', BulkForwardView.as_view(), name='lead-bulk-forward'),
    path('<str:leadid>', LeadDetailView.as_view(), name='lead-detail'),
    path('<str:leadid>/status', LeadStatusView.as_view(), name='lead-status'),
    path('<str:leadid>/retry', LeadRetryView.as_view(), name='lead-retry'),
]
