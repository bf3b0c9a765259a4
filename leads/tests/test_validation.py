"""
Unit tests for validation service.
"""
from datetime import date

import pytest
from django.http import QueryDict

from leads.exceptions import LeadValidationError
from leads.services.validation import validate_lead, coerce_raw_input, require_valid_lead, to_plain_dict


def _fields(errors):
    return {error['field'] for error in errors}


class TestCoerceRawInput:
    """Tests for the pre-validation coercion step."""

    def test_numeric_dnc_strings_become_ints(self):
        result = coerce_raw_input({'dncmobile': '1', 'dncphone': ' 0 '})
        assert result['dncmobile'] == 1
        assert result['dncphone'] == 0

    def test_non_numeric_dnc_left_alone(self):
        result = coerce_raw_input({'dncmobile': 'yes'})
        assert result['dncmobile'] == 'yes'

    def test_timestamp_date_reduced_to_calendar_date(self):
        result = coerce_raw_input({'date': '2024-01-15T10:00:00Z'})
        assert result['date'] == '2024-01-15'

    def test_plain_date_unchanged(self):
        result = coerce_raw_input({'date': '2024-01-15'})
        assert result['date'] == '2024-01-15'

    def test_input_not_mutated(self):
        raw = {'dncmobile': '1'}
        coerce_raw_input(raw)
        assert raw['dncmobile'] == '1'


class TestToPlainDict:
    """Tests for QueryDict flattening."""

    def test_query_dict_last_value_wins(self):
        query = QueryDict('leadid=A&leadid=B&city=Pune')
        assert to_plain_dict(query) == {'leadid': 'B', 'city': 'Pune'}

    def test_non_mapping_returned_unchanged(self):
        assert to_plain_dict(['a']) == ['a']


class TestValidateLeadAccepts:
    """Tests for valid input."""

    def test_minimal_valid_lead(self, valid_lead_payload):
        lead_data, errors = validate_lead(valid_lead_payload)
        assert errors == []
        assert lead_data['leadid'] == 'L1'
        assert lead_data['date'] == date(2024, 1, 15)
        assert lead_data['dncmobile'] == 0

    def test_full_lead_canonicalized(self, full_lead_payload):
        lead_data, errors = validate_lead(full_lead_payload)
        assert errors == []
        assert lead_data['email'] == 'rahul.sharma@example.com'
        assert lead_data['name'] == 'Rahul   Sharma'
        assert lead_data['dncphone'] == 1
        assert lead_data['prefix'] == 'Mr'

    def test_unknown_fields_dropped(self, full_lead_payload):
        lead_data, errors = validate_lead(full_lead_payload)
        assert errors == []
        assert 'utm_source' not in lead_data

    def test_query_string_input(self):
        query = QueryDict(
            'leadid=Q1&leadtype=category&name=Acme&date=2024-01-15&time=9:05:00'
            '&category=Marketing+Services&city=Pune&dncmobile=1&dncphone=0'
        )
        lead_data, errors = validate_lead(query)
        assert errors == []
        assert lead_data['dncmobile'] == 1
        assert lead_data['time'] == '9:05:00'

    def test_blank_optional_fields_allowed(self, valid_lead_payload):
        payload = dict(valid_lead_payload, prefix='', email='', mobile='', pincode='')
        lead_data, errors = validate_lead(payload)
        assert errors == []
        assert lead_data['prefix'] == ''

    def test_timestamp_date_accepted(self, valid_lead_payload):
        payload = dict(valid_lead_payload, date='2024-01-15T18:45:00.000Z')
        lead_data, errors = validate_lead(payload)
        assert errors == []
        assert lead_data['date'] == date(2024, 1, 15)

    def test_choice_fields_trimmed(self, valid_lead_payload):
        payload = dict(valid_lead_payload, leadtype=' company ', prefix='Mr ')
        lead_data, errors = validate_lead(payload)
        assert errors == []
        assert lead_data['leadtype'] == 'company'
        assert lead_data['prefix'] == 'Mr'


class TestValidateLeadRejects:
    """Tests for rule violations."""

    def test_empty_payload_reports_every_required_field(self):
        lead_data, errors = validate_lead({})
        assert lead_data is None
        assert _fields(errors) == {
            'leadid', 'leadtype', 'name', 'date', 'time',
            'category', 'city', 'dncmobile', 'dncphone',
        }

    def test_all_violations_collected(self, valid_lead_payload):
        payload = dict(
            valid_lead_payload,
            leadtype='person',
            mobile='98765-abc',
            pincode='4000AB',
            time='24:00:00',
            dncphone=2,
        )
        lead_data, errors = validate_lead(payload)
        assert lead_data is None
        assert _fields(errors) == {'leadtype', 'mobile', 'pincode', 'time', 'dncphone'}

    def test_error_messages_are_human_readable(self, valid_lead_payload):
        payload = dict(valid_lead_payload)
        del payload['leadid']
        _, errors = validate_lead(payload)
        assert errors == [{'field': 'leadid', 'message': 'Lead ID is required'}]

    def test_leadid_too_long(self, valid_lead_payload):
        payload = dict(valid_lead_payload, leadid='x' * 256)
        _, errors = validate_lead(payload)
        assert errors == [{'field': 'leadid', 'message': 'Lead ID cannot exceed 255 characters'}]

    def test_invalid_prefix(self, valid_lead_payload):
        _, errors = validate_lead(dict(valid_lead_payload, prefix='Prof'))
        assert _fields(errors) == {'prefix'}

    def test_invalid_email(self, valid_lead_payload):
        _, errors = validate_lead(dict(valid_lead_payload, email='not-an-email'))
        assert errors == [{'field': 'email', 'message': 'Please provide a valid email address'}]

    @pytest.mark.parametrize('value', ['2024-13-01', '15/01/2024', 'yesterday'])
    def test_invalid_date(self, valid_lead_payload, value):
        _, errors = validate_lead(dict(valid_lead_payload, date=value))
        assert _fields(errors) == {'date'}

    @pytest.mark.parametrize('value', ['10:30', '10:60:00', '10:30:61', 'noon'])
    def test_invalid_time(self, valid_lead_payload, value):
        _, errors = validate_lead(dict(valid_lead_payload, time=value))
        assert _fields(errors) == {'time'}

    def test_whitespace_only_required_field(self, valid_lead_payload):
        _, errors = validate_lead(dict(valid_lead_payload, city='   '))
        assert errors == [{'field': 'city', 'message': 'City is required'}]

    def test_whitespace_only_leadtype(self, valid_lead_payload):
        _, errors = validate_lead(dict(valid_lead_payload, leadtype='  '))
        assert errors == [{'field': 'leadtype', 'message': 'Lead type is required'}]

    def test_non_numeric_dnc(self, valid_lead_payload):
        _, errors = validate_lead(dict(valid_lead_payload, dncmobile='yes'))
        assert errors == [{'field': 'dncmobile', 'message': 'DNC mobile must be 0 (non-DND) or 1 (DND)'}]

    def test_non_mapping_payload(self):
        lead_data, errors = validate_lead(['not', 'a', 'dict'])
        assert lead_data is None
        assert len(errors) == 1


class TestRequireValidLead:
    """Tests for the raising variant."""

    def test_returns_lead_data(self, valid_lead_payload):
        assert require_valid_lead(valid_lead_payload)['leadid'] == 'L1'

    def test_raises_with_every_error(self):
        with pytest.raises(LeadValidationError) as exc_info:
            require_valid_lead({'leadid': 'X'})
        assert 'leadid' not in _fields(exc_info.value.errors)
        assert 'city' in _fields(exc_info.value.errors)
