#!/usr/bin/env python3
"""
Tests for product code extraction from flattened device records.

Tests cover:
- Lenient comma/equals extraction (present, absent, empty values)
- Values containing '=' (split on first '=' only)
- Substring key matching limitation
- Malformed input (None, NaN, numbers, empty strings)
- JSON and fallback field sources
"""

import pytest

from maude_eda import extraction
from maude_eda.extraction import (
    FallbackFieldSource, JsonFieldSource, LenientFieldSource, extract, get_field_source
)


KEY = 'device_report_product_code'


class TestLenientExtraction:
    """Comma-joined key=value extraction."""

    def test_present_value(self):
        assert extract('a=1,device_report_product_code=XYZ,c=3', KEY) == 'XYZ'

    def test_absent_key(self):
        assert extract('a=1,c=3', KEY) is None

    def test_empty_value_is_absent(self):
        result = extract('device_report_product_code=', KEY)
        assert result is None
        assert result != ''

    def test_first_matching_segment_wins(self):
        assert extract('device_report_product_code=AAA,device_report_product_code=BBB', KEY) == 'AAA'

    def test_value_with_equals_kept_whole(self):
        assert extract('note=x,formula=a=b=c,other=1', 'formula') == 'a=b=c'

    def test_flattened_openfda_record(self):
        blob = ('[{brand_name=FLOWMAX, device_report_product_code=FRN, '
                'manufacturer_d_name=ACME}]')
        assert extract(blob, KEY) == 'FRN'

    def test_value_is_not_stripped(self):
        # Closing brackets of the flattened record stay on the last value
        assert extract('[{brand_name=X, device_report_product_code=FRN}]', KEY) == 'FRN}]'

    def test_substring_key_matches_longer_name(self):
        # Known limitation: 'product_code' is contained in 'device_report_product_code='
        assert extract('device_report_product_code=FRN', 'product_code') == 'FRN'

    def test_segment_without_equals_is_skipped(self):
        assert extract('junk,more junk,device_report_product_code=DQY', KEY) == 'DQY'

    @pytest.mark.parametrize('blob', [None, '', float('nan'), 42, ['a=1'], 'no separators here'])
    def test_malformed_input_is_absent(self, blob):
        assert extract(blob, KEY) is None

    def test_empty_key_is_absent(self):
        assert LenientFieldSource().get('a=1', '') is None


class TestJsonFieldSource:
    """Structured decoding of JSON record strings."""

    def test_nested_lookup(self):
        blob = '[{"brand_name": "FLOWMAX", "openfda": {"device_report_product_code": "FRN"}}]'
        assert JsonFieldSource().get(blob, KEY) == 'FRN'

    def test_missing_key(self):
        assert JsonFieldSource().get('{"a": 1}', KEY) is None

    def test_null_and_empty_values(self):
        source = JsonFieldSource()
        assert source.get('{"device_report_product_code": null}', KEY) is None
        assert source.get('{"device_report_product_code": ""}', KEY) is None

    def test_non_string_value_is_stringified(self):
        assert JsonFieldSource().get('{"count": 3}', 'count') == '3'

    def test_exact_key_match_only(self):
        assert JsonFieldSource().get('{"device_report_product_code": "FRN"}', 'product_code') is None

    def test_undecodable_input(self):
        assert JsonFieldSource().get('a=1,device_report_product_code=FRN', KEY) is None
        assert JsonFieldSource().get(None, KEY) is None


class TestFieldSourceSelection:
    """Configuration-driven field source selection."""

    def test_get_field_source_kinds(self):
        assert isinstance(get_field_source('lenient'), LenientFieldSource)
        assert isinstance(get_field_source('json'), JsonFieldSource)
        assert isinstance(get_field_source('auto'), FallbackFieldSource)

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown field source"):
            get_field_source('xml')

    def test_auto_prefers_json(self):
        source = get_field_source('auto')
        assert source.get('{"device_report_product_code": "FRN"}', KEY) == 'FRN'

    def test_auto_falls_back_to_lenient(self):
        source = get_field_source('auto')
        assert source.get('a=1,device_report_product_code=DQY', KEY) == 'DQY'

    def test_sources_are_callable(self):
        assert get_field_source('lenient')('device_report_product_code=FRN', KEY) == 'FRN'

    def test_extraction_is_stateless(self):
        blob = 'a=1,device_report_product_code=XYZ'
        assert [extract(blob, KEY) for _ in range(3)] == ['XYZ'] * 3
        assert extraction.FIELD_SOURCES == ('lenient', 'json', 'auto')
