"""
Serializers for lead input rules, query parameters and API output.
"""
from rest_framework import serializers

from leads.models import Lead

PHONE_PATTERN = r'^[0-9+\-()\s]*$'
DIGITS_PATTERN = r'^[0-9]*$'
TIME_PATTERN = r'^([01]?[0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$'


def _messages(required=None, max_length=None, invalid=None, choice=None):
    """Build a DRF error_messages dict from the human messages of one field."""
    messages = {}
    if required:
        messages.update({'required': required, 'blank': required, 'null': required})
    if max_length:
        messages['max_length'] = max_length
    if invalid:
        messages['invalid'] = invalid
    if choice:
        messages['invalid_choice'] = choice
    return messages


class TrimmedChoiceField(serializers.ChoiceField):
    """ChoiceField that strips surrounding whitespace before the choice check."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip()
            if data == '':
                if self.allow_blank:
                    return ''
                if 'blank' in self.error_messages:
                    self.fail('blank')
        return super().to_internal_value(data)


class LeadInputSerializer(serializers.Serializer):
    """
    Input rules for a lead submitted by the lead-generation provider.

    Every field is checked and all violations are reported together.
    Keys not declared here are dropped.
    """

    leadid = serializers.CharField(
        max_length=255,
        error_messages=_messages(
            required='Lead ID is required',
            max_length='Lead ID cannot exceed 255 characters',
        ),
    )
    leadtype = TrimmedChoiceField(
        choices=Lead.LeadType.values,
        error_messages=_messages(
            required='Lead type is required',
            choice='Lead type must be either "company" or "category"',
        ),
    )
    prefix = TrimmedChoiceField(
        choices=Lead.Prefix.values,
        required=False,
        allow_blank=True,
        error_messages=_messages(choice='Prefix must be Mr, Ms, Dr, or empty'),
    )
    name = serializers.CharField(
        max_length=255,
        error_messages=_messages(
            required='Name is required',
            max_length='Name cannot exceed 255 characters',
        ),
    )
    mobile = serializers.RegexField(
        PHONE_PATTERN,
        max_length=50,
        required=False,
        allow_blank=True,
        error_messages=_messages(
            max_length='Mobile cannot exceed 50 characters',
            invalid='Mobile number contains invalid characters',
        ),
    )
    phone = serializers.RegexField(
        PHONE_PATTERN,
        max_length=50,
        required=False,
        allow_blank=True,
        error_messages=_messages(
            max_length='Phone cannot exceed 50 characters',
            invalid='Phone number contains invalid characters',
        ),
    )
    email = serializers.EmailField(
        max_length=255,
        required=False,
        allow_blank=True,
        error_messages=_messages(
            max_length='Email cannot exceed 255 characters',
            invalid='Please provide a valid email address',
        ),
    )
    date = serializers.DateField(
        input_formats=['iso-8601'],
        error_messages={
            'required': 'Lead date is required',
            'null': 'Lead date is required',
            'invalid': 'Date must be in ISO format (YYYY-MM-DD)',
            'datetime': 'Date must be in ISO format (YYYY-MM-DD)',
        },
    )
    time = serializers.RegexField(
        TIME_PATTERN,
        error_messages=_messages(
            required='Lead time is required',
            invalid='Please provide a valid time in HH:MM:SS format',
        ),
    )
    category = serializers.CharField(
        max_length=255,
        error_messages=_messages(
            required='Category is required',
            max_length='Category cannot exceed 255 characters',
        ),
    )
    city = serializers.CharField(
        max_length=255,
        error_messages=_messages(
            required='City is required',
            max_length='City cannot exceed 255 characters',
        ),
    )
    area = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        error_messages=_messages(max_length='Area cannot exceed 255 characters'),
    )
    brancharea = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        error_messages=_messages(max_length='Branch area cannot exceed 255 characters'),
    )
    dncmobile = TrimmedChoiceField(
        choices=Lead.DNC.values,
        error_messages=_messages(
            required='DNC mobile status is required',
            choice='DNC mobile must be 0 (non-DND) or 1 (DND)',
        ),
    )
    dncphone = TrimmedChoiceField(
        choices=Lead.DNC.values,
        error_messages=_messages(
            required='DNC phone status is required',
            choice='DNC phone must be 0 (non-DND) or 1 (DND)',
        ),
    )
    company = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        error_messages=_messages(max_length='Company cannot exceed 255 characters'),
    )
    pincode = serializers.RegexField(
        DIGITS_PATTERN,
        max_length=50,
        required=False,
        allow_blank=True,
        error_messages=_messages(
            max_length='Pincode cannot exceed 50 characters',
            invalid='Pincode must contain only numbers',
        ),
    )
    branchpin = serializers.RegexField(
        DIGITS_PATTERN,
        max_length=50,
        required=False,
        allow_blank=True,
        error_messages=_messages(
            max_length='Branch pincode cannot exceed 50 characters',
            invalid='Branch pincode must contain only numbers',
        ),
    )
    parentid = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        error_messages=_messages(max_length='Parent ID cannot exceed 255 characters'),
    )

    def validate_email(self, value):
        return value.lower()


class LeadSerializer(serializers.ModelSerializer):
    """Wire representation of a stored lead."""

    processingTime = serializers.IntegerField(source='processing_time', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Lead
        fields = [
            'id', 'leadid', 'leadtype', 'prefix', 'name', 'mobile', 'phone',
            'email', 'date', 'time', 'category', 'city', 'area', 'brancharea',
            'pincode', 'branchpin', 'dncmobile', 'dncphone', 'company',
            'parentid', 'status', 'processingTime', 'createdAt', 'updatedAt',
        ]


# Larger page sizes are clamped, not rejected.
MAX_LIST_LIMIT = 1000

# Wire sort keys accepted by the list endpoint, mapped to model fields.
SORT_FIELDS = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'date': 'date',
    'leadid': 'leadid',
    'name': 'name',
    'city': 'city',
    'category': 'category',
    'status': 'status',
    'processingTime': 'processing_time',
}


class LeadFilterQuerySerializer(serializers.Serializer):
    """Filter parameters shared by the list and stats endpoints."""

    city = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, input_formats=['iso-8601'])
    endDate = serializers.DateField(required=False, input_formats=['iso-8601'])

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': 'endDate must not be before startDate'})
        return attrs


class LeadListQuerySerializer(LeadFilterQuerySerializer):
    """Query parameters for GET /api/leads/list."""

    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=50, min_value=1)
    leadtype = serializers.ChoiceField(choices=Lead.LeadType.values, required=False)
    status = serializers.ChoiceField(choices=Lead.Status.values, required=False)
    sortBy = serializers.ChoiceField(choices=list(SORT_FIELDS), required=False, default='createdAt')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')

    def validate_limit(self, value):
        return min(value, MAX_LIST_LIMIT)


class BulkForwardSerializer(serializers.Serializer):
    """Body of POST /api/leads/bulk-forward."""

    leadIds = serializers.ListField(
        child=serializers.CharField(max_length=255),
        allow_empty=False,
        max_length=100,
        error_messages={
            'required': 'leadIds array is required and must not be empty',
            'null': 'leadIds array is required and must not be empty',
            'not_a_list': 'leadIds array is required and must not be empty',
            'empty': 'leadIds array is required and must not be empty',
            'max_length': 'Maximum 100 leads can be processed at once',
        },
    )


def flatten_errors(errors, prefix=''):
    """
    Flatten DRF serializer errors into a list of {field, message} entries.

    Nested dict/list errors (e.g. per-item ListField errors) are expanded
    into dotted field paths.
    """
    flattened = []
    if isinstance(errors, dict):
        for field, value in errors.items():
            path = f"{prefix}.{field}" if prefix else str(field)
            flattened.extend(flatten_errors(value, path))
    elif isinstance(errors, list):
        for item in errors:
            if isinstance(item, (dict, list)):
                flattened.extend(flatten_errors(item, prefix))
            else:
                flattened.append({'field': prefix, 'message': str(item)})
    else:
        flattened.append({'field': prefix, 'message': str(errors)})
    return flattened
