"""
Tests for SGTIN parsing, GS1 check digits and ONS FQDN derivation.
"""

import pytest

from core.domain.errors import ErrorCode, MalformedIdentifier
from core.domain.identifiers import (
    calculate_check_digit,
    gtin_to_fqdn,
    parse_sgtin,
    sgtin_to_gtin13,
)


class TestParseSgtin:
    """Tests for the URN grammar."""

    def test_parses_michelin_sgtin(self):
        sgtin = "urn:epc:id:sgtin:086699.0988229.72916502389"
        parsed = parse_sgtin(sgtin)

        assert parsed.company_prefix == "086699"
        assert parsed.indicator_item_ref == "0988229"
        assert parsed.serial_number == "72916502389"
        assert parsed.raw == sgtin

    def test_parses_other_segment_lengths(self):
        parsed = parse_sgtin("urn:epc:id:sgtin:54520007.088855.123456789")
        assert parsed.company_prefix == "54520007"
        assert parsed.indicator_item_ref == "088855"
        assert parsed.serial_number == "123456789"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            None,
            42,
            "invalid",
            "urn:epc:id:sgtin:abc.def.ghi",
            "urn:epc:id:sgtin:086699.0988229",
            "sgtin:086699.0988229.123",
            "urn:epc:id:sgtn:086699.0988229.123",
            "urn:epc:id:sgtin:086699.0988229.123.4",
            "urn:epc:id:sgtin:086699.0988229.123\n",
            " urn:epc:id:sgtin:086699.0988229.123",
            "xurn:epc:id:sgtin:086699.0988229.123",
        ],
    )
    def test_rejects_malformed_identifiers(self, value):
        with pytest.raises(MalformedIdentifier) as exc_info:
            parse_sgtin(value)
        assert exc_info.value.code is ErrorCode.SGTIN_PARSE_ERROR

    def test_parsed_identifier_is_immutable(self):
        parsed = parse_sgtin("urn:epc:id:sgtin:086699.0988229.72916502389")
        with pytest.raises(Exception):
            parsed.serial_number = "1"


class TestCheckDigit:
    """Tests for the GS1 mod-10 check digit."""

    def test_michelin_gtin14_base(self):
        assert calculate_check_digit("0086699988229") == 0

    @pytest.mark.parametrize(
        ("digits", "expected"),
        [
            ("629104150021", 3),
            ("001234567890", 5),
            ("400638133393", 1),
        ],
    )
    def test_known_values(self, digits, expected):
        assert calculate_check_digit(digits) == expected

    def test_rightmost_data_digit_weighs_three(self):
        # "1": 1*3 = 3 -> 7
        assert calculate_check_digit("1") == 7
        # "10": 1*1 + 0*3 = 1 -> 9
        assert calculate_check_digit("10") == 9


class TestGtinAndFqdn:
    def test_sgtin_to_gtin13(self):
        parsed = parse_sgtin("urn:epc:id:sgtin:086699.0988229.72916502389")
        gtin13 = sgtin_to_gtin13(parsed)

        assert gtin13 == "0866999882290"
        assert len(gtin13) == 13
        assert "086699" in gtin13

    def test_serial_does_not_change_gtin(self):
        a = sgtin_to_gtin13(parse_sgtin("urn:epc:id:sgtin:086699.0988229.1"))
        b = sgtin_to_gtin13(parse_sgtin("urn:epc:id:sgtin:086699.0988229.999999"))
        assert a == b

    def test_rejects_wrong_total_length(self):
        parsed = parse_sgtin("urn:epc:id:sgtin:54520007.088855.123456789")
        with pytest.raises(MalformedIdentifier):
            sgtin_to_gtin13(parsed)

    def test_gtin_to_fqdn(self):
        fqdn = gtin_to_fqdn("0866999882290", "gtin.gs1.id.testing.example.org")
        assert fqdn == "0.9.2.2.8.8.9.9.9.6.6.8.0.gtin.gs1.id.testing.example.org"
