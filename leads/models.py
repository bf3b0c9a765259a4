"""
Data models for Lead Relay Service.
"""
from django.db import models


class Lead(models.Model):
    """
    Represents a lead received from the lead-generation provider.
    Stores the submitted fields together with the forwarding outcome.
    """

    class LeadType(models.TextChoices):
        COMPANY = 'company', 'Company'
        CATEGORY = 'category', 'Category'

    class Prefix(models.TextChoices):
        NONE = '', 'None'
        MR = 'Mr', 'Mr'
        MS = 'Ms', 'Ms'
        DR = 'Dr', 'Dr'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSED = 'processed', 'Processed'
        FAILED = 'failed', 'Failed'

    class DNC(models.IntegerChoices):
        ALLOWED = 0, 'Non-DND'
        DO_NOT_CALL = 1, 'DND'

    leadid = models.CharField(max_length=255, unique=True)
    leadtype = models.CharField(max_length=20, choices=LeadType.choices)
    prefix = models.CharField(max_length=10, choices=Prefix.choices, blank=True, default='')
    name = models.CharField(max_length=255)
    mobile = models.CharField(max_length=50, blank=True, default='')
    phone = models.CharField(max_length=50, blank=True, default='')
    email = models.CharField(max_length=255, blank=True, default='')
    date = models.DateField(db_index=True)
    time = models.CharField(max_length=8)
    category = models.CharField(max_length=255, db_index=True)
    city = models.CharField(max_length=255, db_index=True)
    area = models.CharField(max_length=255, blank=True, default='')
    brancharea = models.CharField(max_length=255, blank=True, default='')
    pincode = models.CharField(max_length=50, blank=True, default='')
    branchpin = models.CharField(max_length=50, blank=True, default='')
    dncmobile = models.PositiveSmallIntegerField(choices=DNC.choices)
    dncphone = models.PositiveSmallIntegerField(choices=DNC.choices)
    company = models.CharField(max_length=255, blank=True, default='')
    parentid = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    processing_time = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['leadtype', 'city', 'category'], name='leads_lead_leadtyp_4f1c2a_idx'),
        ]

    def __str__(self):
        return f"Lead {self.leadid} - {self.status}"

    def mark_as(self, status: str, processing_time: int) -> None:
        """Persist a forwarding outcome on this lead."""
        self.status = status
        self.processing_time = max(int(processing_time), 0)
        self.save(update_fields=['status', 'processing_time', 'updated_at'])

    def as_forwarding_data(self) -> dict:
        """Field values used to build the outbound forwarding payload."""
        return {
            'leadid': self.leadid,
            'prefix': self.prefix,
            'name': self.name,
            'mobile': self.mobile,
            'phone': self.phone,
            'email': self.email,
            'date': self.date,
            'time': self.time,
            'category': self.category,
            'city': self.city,
            'area': self.area,
            'brancharea': self.brancharea,
            'pincode': self.pincode,
        }
