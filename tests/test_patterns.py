"""
Tests for per-document-type pattern analysis.

Running:
    python -m pytest tests/test_patterns.py -v
"""

import pytest

from fraud_engine.schemas import DocumentType
from fraud_engine.services.patterns import (
    ANALYZERS,
    analyze_aadhaar,
    analyze_bank_statement,
    analyze_document,
    analyze_driving_license,
    analyze_generic,
    analyze_pan,
    analyze_salary_slip,
    is_valid_aadhaar_number,
    is_valid_pan_number,
)

from conftest import AADHAAR_TEXT


# =============================================================================
# Dispatch
# =============================================================================

def test_every_document_type_has_an_analyzer():
    assert set(ANALYZERS) == set(DocumentType)


@pytest.mark.parametrize("tag,expected", [
    ("aadhaar", DocumentType.AADHAAR),
    ("AADHAAR", DocumentType.AADHAAR),
    (" Pan ", DocumentType.PAN),
    ("driving_license", DocumentType.DRIVING_LICENSE),
    ("bank_statement", DocumentType.BANK_STATEMENT),
    ("salary_slip", DocumentType.SALARY_SLIP),
    ("utility_bill", DocumentType.GENERIC),
    ("", DocumentType.GENERIC),
    (None, DocumentType.GENERIC),
])
def test_document_type_from_tag(tag, expected):
    assert DocumentType.from_tag(tag) is expected


def test_unknown_type_uses_generic_analysis():
    text = "x" * 60
    assert analyze_document(text, DocumentType.from_tag("passport")).confidence == 60


# =============================================================================
# Aadhaar
# =============================================================================

def test_aadhaar_full_card():
    result = analyze_aadhaar(AADHAAR_TEXT)
    assert result.confidence == 100
    assert result.is_valid
    assert result.extracted_data["aadhaar_number"] == "482155739016"
    assert result.extracted_data["name"] == "Rahul Kumar"
    assert result.extracted_data["date_of_birth"] == "15/08/1990"
    assert result.extracted_data["gender"] == "MALE"
    assert result.extracted_data["address"].startswith("12 MG Road")
    assert all(result.checks.values())


@pytest.mark.parametrize("number", [
    "0000 0000 0000",
    "1111 1111 1111",
    "7777 7777 7777",
    "1234 5678 9012",
])
def test_aadhaar_sentinel_numbers_are_invalid(number):
    assert not is_valid_aadhaar_number(number)
    text = AADHAAR_TEXT.replace("4821 5573 9016", number)
    result = analyze_aadhaar(text)
    assert result.checks["has_valid_aadhaar_number"] is False
    assert result.confidence == 70


def test_aadhaar_threshold_is_50():
    # number (30) + government text (25) = 55
    result = analyze_aadhaar("GOVERNMENT OF INDIA\n4821 5573 9016")
    assert result.confidence == 55
    assert result.is_valid

    # government text (25) + UID (20) = 45
    result = analyze_aadhaar("GOVERNMENT OF INDIA\nUnique Identification Authority")
    assert result.confidence == 45
    assert not result.is_valid


def test_aadhaar_female_gender():
    result = analyze_aadhaar("Gender: Female")
    assert result.extracted_data["gender"] == "FEMALE"


# =============================================================================
# PAN
# =============================================================================

PAN_TEXT = """INCOME TAX DEPARTMENT
GOVT. OF INDIA
RAHUL KUMAR
Father's Name: SURESH KUMAR
15/08/1990
ABCPK1234F"""


def test_pan_full_card():
    result = analyze_pan(PAN_TEXT)
    assert result.confidence == 100
    assert result.is_valid
    assert result.extracted_data["pan_number"] == "ABCPK1234F"
    assert result.extracted_data["father_name"] == "SURESH KUMAR"
    assert result.checks["has_valid_pan_number"]


@pytest.mark.parametrize("pan", ["AAAAA0000A", "BBBBB1111B", "CCCCC9999Z", "SAMPLE123A", None, ""])
def test_pan_sentinels(pan):
    assert not is_valid_pan_number(pan)


def test_pan_sentinel_loses_number_weight():
    result = analyze_pan(PAN_TEXT.replace("ABCPK1234F", "AAAAA0000A"))
    assert result.checks["has_valid_pan_number"] is False
    assert result.confidence == 60
    assert result.is_valid


def test_pan_without_number_is_invalid():
    result = analyze_pan("INCOME TAX DEPARTMENT\n15/08/1990")
    assert result.confidence == 40
    assert not result.is_valid


# =============================================================================
# Driving license
# =============================================================================

DL_TEXT = """UNION OF INDIA
DRIVING LICENCE
TRANSPORT DEPARTMENT MAHARASHTRA
DL No: MH12 20110012345
Name: RAHUL KUMAR
DOB: 15/08/1990
Valid Till: 14-08-2030
COV: LMV MCWG"""


def test_driving_license_full():
    result = analyze_driving_license(DL_TEXT)
    assert result.confidence == 100
    assert result.is_valid
    assert result.extracted_data["license_number"] == "MH1220110012345"
    assert result.extracted_data["state_code"] == "MH"
    assert result.extracted_data["valid_till"] == "14-08-2030"
    assert result.extracted_data["vehicle_classes"] == ["LMV", "MCWG"]


def test_driving_license_sentinel_serial():
    result = analyze_driving_license(DL_TEXT.replace("0012345", "0000000"))
    assert result.checks["has_valid_license_number"] is False
    assert result.confidence == 65


def test_driving_license_dashed_number():
    result = analyze_driving_license("DL-04-2015-1234567")
    assert result.checks["has_valid_license_number"]
    assert result.extracted_data["license_number"] == "DL0420151234567"


# =============================================================================
# Bank statement
# =============================================================================

BANK_TEXT = """HDFC BANK
Account Holder: RAHUL KUMAR
Account No: 50100123456789
IFSC: HDFC0001234
Statement Period: 01/01/2024 to 31/03/2024
05/01/2024 SALARY CREDIT 85,000.00
12/01/2024 RENT 25,000.00
Closing Balance: Rs. 1,20,450.75"""


def test_bank_statement_full():
    result = analyze_bank_statement(BANK_TEXT)
    assert result.confidence == 100
    assert result.is_valid
    data = result.extracted_data
    assert data["account_number"] == "50100123456789"
    assert data["ifsc_code"] == "HDFC0001234"
    assert data["bank_name"] == "HDFC BANK"
    assert data["current_balance"] == "1,20,450.75"
    assert data["account_holder"] == "RAHUL KUMAR"
    assert data["transaction_count"] == 3
    assert data["statement_period"] == "01/01/2024 to 31/03/2024"


def test_bank_statement_repeated_digit_account_is_sentinel():
    result = analyze_bank_statement(BANK_TEXT.replace("50100123456789", "000000000000"))
    assert result.checks["has_account_number"]
    assert result.checks["has_valid_account_number"] is False
    assert result.confidence == 75


def test_bank_statement_threshold_60():
    result = analyze_bank_statement("SBI BANK\nAccount No: 123456789012\n")
    assert result.confidence == 50
    assert not result.is_valid


# =============================================================================
# Salary slip
# =============================================================================

SALARY_TEXT = """Acme Technologies Pvt. Ltd.
Payslip for the month of March 2024
Employee Name: Rahul Kumar
Employee ID: EMP-1042
Basic Salary: 45,000.00
Provident Fund 5,400.00
Professional Tax 200.00
Net Pay: Rs. 62,300.00"""


def test_salary_slip_full():
    result = analyze_salary_slip(SALARY_TEXT)
    assert result.confidence == 100
    assert result.is_valid
    data = result.extracted_data
    assert data["net_pay"] == 62300.0
    assert data["gross_earnings"] == 45000.0
    assert data["pay_period"] == "March 2024"
    assert data["employee_id"] == "EMP-1042"


def test_salary_slip_zero_net_pay_is_sentinel():
    result = analyze_salary_slip(SALARY_TEXT.replace("62,300.00", "0.00"))
    assert result.checks["has_valid_net_pay"] is False
    assert result.confidence == 75


# =============================================================================
# Generic
# =============================================================================

def test_generic_long_text():
    result = analyze_generic("a" * 51)
    assert result.confidence == 60
    assert result.is_valid


def test_generic_short_text():
    result = analyze_generic("a" * 50)
    assert result.confidence == 20
    assert not result.is_valid
    assert result.checks["is_readable"]


def test_empty_text_never_raises():
    for doc_type in DocumentType:
        result = analyze_document("", doc_type)
        assert 0 <= result.confidence <= 100
        assert not result.is_valid
