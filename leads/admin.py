"""
Django admin configuration for leads app.
"""
from django.contrib import admin
from leads.models import Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    """Admin interface for Lead model."""

    list_display = ('leadid', 'name', 'category', 'city', 'status', 'processing_time', 'created_at')
    list_filter = ('status', 'leadtype', 'created_at')
    search_fields = ('leadid', 'name', 'city', 'category')
    readonly_fields = ('leadid', 'processing_time', 'created_at', 'updated_at')

    fieldsets = (
        ('Status', {
            'fields': ('leadid', 'status', 'processing_time')
        }),
        ('Contact', {
            'fields': ('leadtype', 'prefix', 'name', 'mobile', 'phone', 'email',
                       'dncmobile', 'dncphone', 'company', 'parentid')
        }),
        ('Enquiry', {
            'fields': ('date', 'time', 'category', 'city', 'area', 'brancharea',
                       'pincode', 'branchpin')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        """Leads only enter through the intake endpoint."""
        return False
