"""
Tests for the per-ID-type field parsers
"""
import pytest

from idscan.models.card import IdType
from idscan.services.id_parsers import (
    parse_city_id,
    parse_drivers_license,
    parse_generic,
    parse_national_id,
    parse_philhealth_id,
    parse_sss_id,
    parse_text_by_id_type,
    parse_umid,
)

from fakes import NATIONAL_ID_TEXT


PHILHEALTH_TEXT = "PHILHEALTH\nSANTOS, MARIA C.\nJan. 03, 1999\n12-345678901-2"

UMID_TEXT = (
    "UMID\nCRN-0111-1234567-8\nSURNAME\nDELA CRUZ\nGIVEN NAME\nJUAN\n"
    "MIDDLE NAME\nSANTOS\nDATE OF BIRTH\n1999/01/03"
)

LICENSE_TEXT = (
    "LAND TRANSPORTATION OFFICE\nNon-Professional\nDELA CRUZ, JUAN PEDRO\n"
    "N01-23-456789\n1999/01/03\nADDRESS\n123 Rizal St., Quezon City"
)

CITY_TEXT = (
    "QUEZON CITY CITIZEN ID\nID No. QC- 00123456\nSANTOS, MARIA\n01/15/1990\n"
    "ADDRESS\nBrgy. Bagong Silang, Quezon City"
)


class TestNationalId:
    """Test PhilSys parsing."""

    def test_full_card(self):
        info = parse_national_id(NATIONAL_ID_TEXT)
        assert info.id_type == IdType.NATIONAL_ID.value
        assert info.full_name == "JUAN PEDRO DELA CRUZ"
        assert info.dob == "1999-01-03"
        assert info.id_number == "1234-5678-9012-3456"
        assert info.confidence.full_name == 0.95
        assert info.confidence.id_number == 1.0

    def test_middle_name_order(self):
        text = (
            "Apelyido\nDELA CRUZ\nMga Pangalan\nJUAN\nGitnang Apelyido\nSANTOS\n"
            "Petsa ng Kapanganakan\nMarch 15, 1985"
        )
        info = parse_national_id(text)
        assert info.full_name == "JUAN SANTOS DELA CRUZ"
        assert info.dob == "1985-03-15"

    def test_missing_fields_get_low_confidence(self):
        info = parse_national_id("PHILSYS")
        assert info.id_number == ""
        assert info.dob == ""
        assert info.confidence.id_number == 0.3
        assert info.confidence.dob == 0.4


class TestPhilHealth:
    """Test PhilHealth parsing."""

    def test_full_card(self):
        info = parse_philhealth_id(PHILHEALTH_TEXT)
        assert info.id_type == IdType.PHILHEALTH.value
        assert info.full_name == "MARIA C. SANTOS"
        assert info.dob == "1999-01-03"
        assert info.id_number == "12-345678901-2"
        assert info.confidence.id_number == 0.98

    def test_no_name_line(self):
        info = parse_philhealth_id("PHILHEALTH\n12-345678901-2")
        assert info.full_name == ""
        assert info.confidence.full_name == 0.3


class TestUmid:
    """Test UMID parsing."""

    def test_full_card(self):
        info = parse_umid(UMID_TEXT)
        assert info.id_type == IdType.UMID.value
        assert info.id_number == "CRN-0111-1234567-8"
        assert info.full_name == "JUAN SANTOS DELA CRUZ"
        assert info.dob == "1999-01-03"

    def test_crn_with_spaces(self):
        info = parse_umid("CRN 0111 1234567 8")
        assert info.id_number == "CRN-0111-1234567-8"


class TestDriversLicense:
    """Test LTO license parsing."""

    def test_full_card(self):
        info = parse_drivers_license(LICENSE_TEXT)
        assert info.id_type == IdType.DRIVERS_LICENSE.value
        assert info.id_number == "N01-23-456789"
        assert info.full_name == "JUAN PEDRO DELA CRUZ"
        assert info.dob == "1999-01-03"
        assert info.address == "123 Rizal St., Quezon City"
        assert info.confidence.address == 0.7

    def test_compact_date(self):
        info = parse_drivers_license("LTO\n1999/0103")
        assert info.dob == "1999-01-03"

    def test_no_address(self):
        info = parse_drivers_license("LTO")
        assert info.address == ""
        assert info.confidence.address == 0.2


class TestSss:
    """Test SSS parsing."""

    def test_caps_name(self):
        info = parse_sss_id("SOCIAL SECURITY SYSTEM\nJUAN DELA CRUZ\nSS No. 34-1234567-8")
        assert info.id_type == IdType.SSS.value
        assert info.full_name == "JUAN DELA CRUZ"
        assert info.id_number == "34-1234567-8"

    def test_comma_name_and_undashed_number(self):
        info = parse_sss_id("SOCIAL SECURITY SYSTEM\nSANTOS, MARIA C.\n3412345678")
        assert info.full_name == "MARIA C. SANTOS"
        assert info.id_number == "34-1234567-8"

    def test_nine_digit_number_is_zero_padded(self):
        info = parse_sss_id("SSS\n412345678")
        assert info.id_number == "04-1234567-8"


class TestCityId:
    """Test city / barangay ID parsing."""

    def test_full_card(self):
        info = parse_city_id(CITY_TEXT)
        assert info.id_type == IdType.CITY_ID.value
        assert info.id_number == "QC-00123456"
        assert info.full_name == "MARIA SANTOS"
        assert info.dob == "1990-01-15"
        assert info.address == "Brgy. Bagong Silang, Quezon City"

    def test_long_digit_number(self):
        info = parse_city_id("BARANGAY ID\n2023000145")
        assert info.id_number == "2023000145"


class TestGeneric:
    """Test the fallback parser."""

    def test_best_effort_fields(self):
        info = parse_generic("JUAN DELA CRUZ\nID A12-345-6789\nBirth Date: 5/6/1990")
        assert info.id_type == IdType.UNKNOWN.value
        assert info.full_name == "JUAN DELA CRUZ"
        assert info.dob == "1990-05-06"
        assert info.id_number == "A12-345-6789"

    def test_empty_text(self):
        info = parse_generic("")
        assert not info.has_any_field()
        assert info.confidence.dob == 0.2


class TestDispatch:
    """Test parse_text_by_id_type routing."""

    @pytest.mark.parametrize("label,expected_type", [
        ("National ID", IdType.NATIONAL_ID),
        ("national id", IdType.NATIONAL_ID),
        ("PhilHealth ID", IdType.PHILHEALTH),
        ("UMID", IdType.UMID),
        ("Driver's License", IdType.DRIVERS_LICENSE),
        ("SSS ID", IdType.SSS),
        ("City ID", IdType.CITY_ID),
        ("QC ID", IdType.CITY_ID),
        ("Other", IdType.CITY_ID),
    ])
    def test_known_labels(self, label, expected_type):
        info = parse_text_by_id_type("SOME TEXT", label)
        assert info.id_type == expected_type.value

    @pytest.mark.parametrize("label", ["School ID", "Passport", "", None])
    def test_unknown_labels_use_generic(self, label):
        info = parse_text_by_id_type("JUAN DELA CRUZ", label)
        assert info.id_type == IdType.UNKNOWN.value
        assert info.full_name == "JUAN DELA CRUZ"

    def test_accepts_enum(self):
        info = parse_text_by_id_type(NATIONAL_ID_TEXT, IdType.NATIONAL_ID)
        assert info.id_number == "1234-5678-9012-3456"

    def test_none_text(self):
        info = parse_text_by_id_type(None, "UMID")
        assert info.id_type == IdType.UMID.value
        assert not info.has_any_field()
