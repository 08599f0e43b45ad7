"""
Tests for ID type detection
"""
import pytest

from idscan.models.card import IdType
from idscan.services.classifier import (
    DEFAULT_CONFIDENCE, LICENSE_NUMBER, SIGNATURES, detect_id_type
)

from fakes import NATIONAL_ID_TEXT


class TestDetectIdType:
    """Test the ordered signature table."""

    def test_national_id(self):
        detected = detect_id_type(NATIONAL_ID_TEXT)
        assert detected.id_type == IdType.NATIONAL_ID.value
        assert detected.confidence == 0.95
        assert "PhilSys / National ID" in detected.matched_patterns

    def test_national_id_number_alone_is_enough(self):
        detected = detect_id_type("0000-1111-2222-3333")
        assert detected.id_type == IdType.NATIONAL_ID.value
        assert detected.matched_patterns == ("ID: XXXX-XXXX-XXXX-XXXX",)

    def test_umid_crn(self):
        detected = detect_id_type("SSS\nCRN-0111-1234567-8\nJUAN DELA CRUZ")
        assert detected.id_type == IdType.UMID.value
        assert "CRN-XXXX-XXXXXXX-X" in detected.matched_patterns

    def test_umid_wins_over_sss_branding(self):
        detected = detect_id_type("SOCIAL SECURITY SYSTEM\nUMID\nJUAN DELA CRUZ")
        assert detected.id_type == IdType.UMID.value

    def test_multi_purpose_republic_text(self):
        detected = detect_id_type("Republic of the Philippines\nUnified Multi-Purpose ID")
        assert detected.id_type == IdType.UMID.value

    def test_drivers_license(self):
        detected = detect_id_type("LAND TRANSPORTATION OFFICE\nN01-23-456789")
        assert detected.id_type == IdType.DRIVERS_LICENSE.value
        assert detected.confidence == 0.9
        assert detected.matched_patterns == ("LTO / Driver's License", "ID: N##-##-######")

    def test_philhealth(self):
        detected = detect_id_type("PHILHEALTH\nSANTOS, MARIA\n12-345678901-2")
        assert detected.id_type == IdType.PHILHEALTH.value
        assert len(detected.matched_patterns) == 2

    def test_sss_by_name(self):
        detected = detect_id_type("SOCIAL SECURITY SYSTEM\n34-1234567-8")
        assert detected.id_type == IdType.SSS.value
        assert detected.confidence == 0.85

    def test_sss_token_needs_number(self):
        assert detect_id_type("SSS\n34-1234567-8").id_type == IdType.SSS.value
        assert detect_id_type("SSS MEMBER").id_type == IdType.OTHER.value

    def test_sss_token_conflicts_with_philsys(self):
        detected = detect_id_type("SSS PHILSYS 34-1234567-8")
        assert detected.id_type == IdType.OTHER.value

    def test_city_id(self):
        detected = detect_id_type("QUEZON CITY\nCITIZEN CARD")
        assert detected.id_type == IdType.CITY_ID.value
        assert detected.confidence == 0.8

    def test_school_id(self):
        detected = detect_id_type("UNIVERSITY OF SANTO TOMAS")
        assert detected.id_type == IdType.SCHOOL_ID.value
        assert detected.confidence == 0.7

    def test_case_insensitive(self):
        assert detect_id_type("philhealth member").id_type == IdType.PHILHEALTH.value

    def test_first_match_wins(self):
        """A PhilSys number outranks PhilHealth branding"""
        detected = detect_id_type("PHILHEALTH\n1234-5678-9012-3456")
        assert detected.id_type == IdType.NATIONAL_ID.value

    @pytest.mark.parametrize("text", ["", "   \n  ", None])
    def test_empty_text(self, text):
        detected = detect_id_type(text)
        assert detected.id_type == IdType.OTHER.value
        assert detected.confidence == 0.0
        assert detected.matched_patterns == ()

    def test_no_match_defaults_to_other(self):
        detected = detect_id_type("HELLO WORLD")
        assert detected.id_type == IdType.OTHER.value
        assert detected.confidence == DEFAULT_CONFIDENCE
        assert detected.matched_patterns == ("No patterns matched",)

    def test_sss_name_lists_number(self):
        detected = detect_id_type("SOCIAL SECURITY SYSTEM\n34-1234567-8")
        assert detected.matched_patterns == ("Social Security System", "ID: XX-XXXXXXX-X")

    def test_lowercase_noise_is_not_a_license_prefix(self):
        assert LICENSE_NUMBER.search("x01-23-456789").group(0) == "01-23-456789"
        assert LICENSE_NUMBER.search("N01-23-456789").group(0) == "N01-23-456789"
        assert detect_id_type("N01-23-456789").id_type == IdType.DRIVERS_LICENSE.value

    def test_signature_order(self):
        order = [signature.id_type for signature in SIGNATURES]
        assert order.index(IdType.UMID) < order.index(IdType.SSS)
        assert order[0] == IdType.NATIONAL_ID


class TestFusedOcrText:
    """OCR output with the spaces between words dropped."""

    @pytest.mark.parametrize("text,expected", [
        ("REPUBLICOFTHEPHILIPPINES\nMULTIPURPOSE", IdType.UMID),
        ("PHILIPPINES REPUBLIC\nMULTI ID PURPOSE", IdType.UMID),
        ("REPUBLIC PHILIPPINES UNIFIED", IdType.UMID),
        ("LANDTRANSPORTATIONOFFICE", IdType.DRIVERS_LICENSE),
        ("DRIVERSLICENSE", IdType.DRIVERS_LICENSE),
        ("PHILIPPINEHEALTHINSURANCE", IdType.PHILHEALTH),
        ("SOCIALSECURITYSYSTEM", IdType.SSS),
        ("QUEZONCITY", IdType.CITY_ID),
        ("BARANGAYID", IdType.CITY_ID),
        ("STUDENTID", IdType.SCHOOL_ID),
    ])
    def test_detects_without_spaces(self, text, expected):
        assert detect_id_type(text).id_type == expected.value

    def test_republic_alone_is_not_umid(self):
        assert detect_id_type("REPUBLIC OF THE PHILIPPINES").id_type == IdType.OTHER.value

    def test_fragmented_umid_patterns(self):
        detected = detect_id_type("REPUBLICOFTHEPHILIPPINES\nMULTIPURPOSE")
        assert detected.confidence == 0.95
        assert detected.matched_patterns == (
            "Republic of the Philippines", "Multi-Purpose ID text"
        )
