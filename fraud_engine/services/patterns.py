"""
Per-document-type field extraction and plausibility scoring.

Each analyzer applies a fixed set of regular expressions to OCR text, rejects
known placeholder identifiers, and sums fixed per-signal weights into a
0..100 confidence. A document is considered valid once its confidence reaches
the type-specific threshold.
"""

import re
from typing import Callable, Dict, List, Optional

from fraud_engine.schemas import DocumentAnalysisResult, DocumentType

DOB_PATTERN = re.compile(r"\b\d{2}/\d{2}/\d{4}\b")

VALIDITY_THRESHOLDS: Dict[DocumentType, int] = {
    DocumentType.AADHAAR: 50,
    DocumentType.PAN: 60,
    DocumentType.DRIVING_LICENSE: 60,
    DocumentType.BANK_STATEMENT: 60,
    DocumentType.SALARY_SLIP: 60,
}

AADHAAR_WEIGHTS = {"valid_number": 30, "government": 25, "uid": 20, "dob": 15, "gender": 10}
PAN_WEIGHTS = {"valid_number": 40, "income_tax": 30, "government": 20, "dob": 10}
DRIVING_LICENSE_WEIGHTS = {"valid_number": 35, "authority": 25, "dob": 15, "validity": 15, "vehicle_class": 10}
BANK_STATEMENT_WEIGHTS = {"account_number": 25, "bank_name": 25, "ifsc": 20, "balance": 15, "transactions": 15}
SALARY_SLIP_WEIGHTS = {"net_pay": 25, "earnings": 20, "pay_period": 20, "employee": 15, "deductions": 10, "employer": 10}

GENERIC_MIN_LENGTH = 50

AADHAAR_SENTINELS = {"000000000000", "111111111111", "123456789012"}
PAN_SENTINELS = {"AAAAA0000A", "BBBBB1111B", "SAMPLE123A"}


def _first(pattern: re.Pattern, text: str, group: int = 0) -> Optional[str]:
    m = pattern.search(text)
    if not m:
        return None
    value = m.group(group)
    return value.strip() if value else None


def _repeated(value: str) -> bool:
    return len(set(value)) == 1


def _finish(
    doc_type: DocumentType,
    confidence: int,
    extracted: Dict[str, object],
    checks: Dict[str, bool],
) -> DocumentAnalysisResult:
    confidence = max(0, min(confidence, 100))
    return DocumentAnalysisResult(
        extracted_data=extracted,
        confidence=confidence,
        is_valid=confidence >= VALIDITY_THRESHOLDS[doc_type],
        checks=checks,
    )


# ---------------------------------------------------------------------------
# Aadhaar
# ---------------------------------------------------------------------------

AADHAAR_NUMBER = re.compile(r"\b\d{4}\s?\d{4}\s?\d{4}\b")
AADHAAR_NAME = re.compile(r"^[A-Z][a-z]+(?: [A-Z][a-z]+)*$", re.MULTILINE)
GENDER = re.compile(r"\b(MALE|FEMALE)\b", re.IGNORECASE)
GOVT_OF_INDIA = re.compile(r"GOVERNMENT\s+OF\s+INDIA", re.IGNORECASE)
UID_AUTHORITY = re.compile(r"Unique\s+Identification\s+Authority", re.IGNORECASE)
ADDRESS = re.compile(r"Address[:\s]*(.+)", re.IGNORECASE)


def is_valid_aadhaar_number(number: Optional[str]) -> bool:
    if not number:
        return False
    digits = re.sub(r"\s", "", number)
    return digits not in AADHAAR_SENTINELS and not _repeated(digits)


def analyze_aadhaar(text: str) -> DocumentAnalysisResult:
    number = _first(AADHAAR_NUMBER, text)
    name = _first(AADHAAR_NAME, text)
    dob = _first(DOB_PATTERN, text)
    gender = _first(GENDER, text)
    has_govt = bool(GOVT_OF_INDIA.search(text))
    has_uid = bool(UID_AUTHORITY.search(text))
    valid_number = is_valid_aadhaar_number(number)

    w = AADHAAR_WEIGHTS
    confidence = 0
    if valid_number:
        confidence += w["valid_number"]
    if has_govt:
        confidence += w["government"]
    if has_uid:
        confidence += w["uid"]
    if dob:
        confidence += w["dob"]
    if gender:
        confidence += w["gender"]

    return _finish(
        DocumentType.AADHAAR,
        confidence,
        {
            "aadhaar_number": re.sub(r"\s", "", number) if number else None,
            "name": name,
            "date_of_birth": dob,
            "gender": gender.upper() if gender else None,
            "address": _first(ADDRESS, text, 1),
        },
        {
            "has_valid_aadhaar_number": valid_number,
            "has_government_text": has_govt,
            "has_uid_text": has_uid,
            "has_personal_info": bool(name and dob),
        },
    )


# ---------------------------------------------------------------------------
# PAN
# ---------------------------------------------------------------------------

PAN_NUMBER = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
PAN_NAME = re.compile(r"^[A-Z][A-Z ]+$", re.MULTILINE)
FATHER_NAME = re.compile(r"Father['\s]*s?\s*Name[:\s]*([A-Za-z ]+)", re.IGNORECASE)
INCOME_TAX = re.compile(r"INCOME\s+TAX\s+DEPARTMENT", re.IGNORECASE)
GOVT_ABBREVIATED = re.compile(r"GOVT\.\s+OF\s+INDIA", re.IGNORECASE)


def is_valid_pan_number(pan: Optional[str]) -> bool:
    if not pan:
        return False
    if pan in PAN_SENTINELS:
        return False
    return not (_repeated(pan[:5]) and _repeated(pan[5:9]))


def analyze_pan(text: str) -> DocumentAnalysisResult:
    pan = _first(PAN_NUMBER, text)
    names = [m.group(0).strip() for m in PAN_NAME.finditer(text)]
    name = next((n for n in names if len(n) > 3), None)
    father = _first(FATHER_NAME, text, 1)
    dob = _first(DOB_PATTERN, text)
    has_income_tax = bool(INCOME_TAX.search(text))
    has_govt = bool(GOVT_ABBREVIATED.search(text))
    valid_pan = is_valid_pan_number(pan)

    w = PAN_WEIGHTS
    confidence = 0
    if valid_pan:
        confidence += w["valid_number"]
    if has_income_tax:
        confidence += w["income_tax"]
    if has_govt:
        confidence += w["government"]
    if dob:
        confidence += w["dob"]

    return _finish(
        DocumentType.PAN,
        confidence,
        {
            "pan_number": pan,
            "name": name,
            "father_name": father,
            "date_of_birth": dob,
        },
        {
            "has_valid_pan_number": valid_pan,
            "has_income_tax_text": has_income_tax,
            "has_government_text": has_govt,
            "has_personal_info": bool(names or dob),
        },
    )


# ---------------------------------------------------------------------------
# Driving license
# ---------------------------------------------------------------------------

# state code, RTO code, year of issue, 7-digit serial
DL_NUMBER = re.compile(r"\b([A-Z]{2})[-\s]?(\d{2})[-\s]?((?:19|20)\d{2})[-\s]?(\d{7})\b")
DL_AUTHORITY = re.compile(
    r"DRIVING\s+LICEN[CS]E|TRANSPORT\s+DEPARTMENT|UNION\s+OF\s+INDIA", re.IGNORECASE
)
DL_VALIDITY = re.compile(
    r"(?:Valid\s*(?:Till|Upto|Up\s+to)|Validity(?:\s*\(NT\))?)[:\s]*(\d{2}[-/]\d{2}[-/]\d{4})",
    re.IGNORECASE,
)
DL_HOLDER = re.compile(r"Name[:\s]*([A-Za-z ]+)", re.IGNORECASE)
VEHICLE_CLASS = re.compile(r"\b(LMV(?:-NT|-TR)?|MCWG|MCWOG|HMV|HGMV|HPMV|TRANS)\b")


def is_valid_dl_number(match: Optional[re.Match]) -> bool:
    if match is None:
        return False
    return not _repeated(match.group(4))


def analyze_driving_license(text: str) -> DocumentAnalysisResult:
    number_match = DL_NUMBER.search(text)
    valid_number = is_valid_dl_number(number_match)
    has_authority = bool(DL_AUTHORITY.search(text))
    dob = _first(DOB_PATTERN, text)
    validity = _first(DL_VALIDITY, text, 1)
    classes = sorted({m.group(1) for m in VEHICLE_CLASS.finditer(text)})

    w = DRIVING_LICENSE_WEIGHTS
    confidence = 0
    if valid_number:
        confidence += w["valid_number"]
    if has_authority:
        confidence += w["authority"]
    if dob:
        confidence += w["dob"]
    if validity:
        confidence += w["validity"]
    if classes:
        confidence += w["vehicle_class"]

    return _finish(
        DocumentType.DRIVING_LICENSE,
        confidence,
        {
            "license_number": "".join(number_match.groups()) if number_match else None,
            "state_code": number_match.group(1) if number_match else None,
            "holder_name": _first(DL_HOLDER, text, 1),
            "date_of_birth": dob,
            "valid_till": validity,
            "vehicle_classes": classes,
        },
        {
            "has_valid_license_number": valid_number,
            "has_issuing_authority": has_authority,
            "has_validity_date": bool(validity),
            "has_vehicle_class": bool(classes),
        },
    )


# ---------------------------------------------------------------------------
# Bank statement
# ---------------------------------------------------------------------------

ACCOUNT_NUMBER = re.compile(r"Account\s+No[.:]?\s*(\d{9,18})", re.IGNORECASE)
IFSC = re.compile(r"IFSC[:\s]*([A-Z]{4}0[A-Z0-9]{6})", re.IGNORECASE)
BANK_NAME = re.compile(r"(HDFC|ICICI|SBI|AXIS|KOTAK|PNB|BOI|CANARA|UNION)\s+BANK", re.IGNORECASE)
BALANCE = re.compile(r"Balance[:\s]*Rs\.?\s*([\d,]+\.?\d*)", re.IGNORECASE)
TRANSACTION = re.compile(r"\d{2}/\d{2}/\d{4}\s+.*?\s+([\d,]+\.?\d*)")
ACCOUNT_HOLDER = re.compile(r"Account\s+Holder[:\s]*([A-Za-z ]+)", re.IGNORECASE)
STATEMENT_PERIOD = re.compile(
    r"Statement\s+Period[:\s]*(\d{2}/\d{2}/\d{4})\s*to\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE
)


def analyze_bank_statement(text: str) -> DocumentAnalysisResult:
    account = _first(ACCOUNT_NUMBER, text, 1)
    valid_account = bool(account) and not _repeated(account)
    ifsc = _first(IFSC, text, 1)
    bank = _first(BANK_NAME, text)
    balance = _first(BALANCE, text, 1)
    transactions = TRANSACTION.findall(text)
    period = STATEMENT_PERIOD.search(text)

    w = BANK_STATEMENT_WEIGHTS
    confidence = 0
    if valid_account:
        confidence += w["account_number"]
    if bank:
        confidence += w["bank_name"]
    if ifsc:
        confidence += w["ifsc"]
    if balance:
        confidence += w["balance"]
    if transactions:
        confidence += w["transactions"]

    return _finish(
        DocumentType.BANK_STATEMENT,
        confidence,
        {
            "account_number": account,
            "ifsc_code": ifsc.upper() if ifsc else None,
            "bank_name": bank,
            "current_balance": balance,
            "account_holder": _first(ACCOUNT_HOLDER, text, 1),
            "transaction_count": len(transactions),
            "statement_period": f"{period.group(1)} to {period.group(2)}" if period else None,
        },
        {
            "has_account_number": bool(account),
            "has_valid_account_number": valid_account,
            "has_bank_name": bool(bank),
            "has_ifsc": bool(ifsc),
            "has_transactions": bool(transactions),
            "has_balance": bool(balance),
        },
    )


# ---------------------------------------------------------------------------
# Salary slip
# ---------------------------------------------------------------------------

_AMOUNT = r"(?:Rs\.?|INR|₹)?\s*([\d,]+(?:\.\d+)?)"
NET_PAY = re.compile(r"Net\s+(?:Pay|Salary|Amount\s+Payable)[:\s]*" + _AMOUNT, re.IGNORECASE)
EARNINGS = re.compile(r"(?:Gross\s+(?:Salary|Earnings|Pay)|Basic(?:\s+(?:Pay|Salary))?)[:\s]*" + _AMOUNT, re.IGNORECASE)
PAY_PERIOD = re.compile(
    r"\b(January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[\s,\-']+(\d{4}|\d{2})\b",
    re.IGNORECASE,
)
EMPLOYEE_NAME = re.compile(r"Employee\s+Name[:\s]*([A-Za-z ]+)", re.IGNORECASE)
EMPLOYEE_ID = re.compile(r"(?:Employee|Emp)\.?\s*(?:ID|Code|No)[.:\s]*([A-Z0-9\-]+)", re.IGNORECASE)
DEDUCTIONS = re.compile(r"\b(?:PF|EPF|Provident\s+Fund|TDS|Professional\s+Tax|ESI)\b", re.IGNORECASE)
EMPLOYER = re.compile(r"\b[A-Z][\w&.\- ]*?\s(?:Pvt\.?\s*Ltd\.?|Private\s+Limited|Limited|LLP)\b")


def _amount(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


def analyze_salary_slip(text: str) -> DocumentAnalysisResult:
    net_pay = _amount(_first(NET_PAY, text, 1))
    valid_net_pay = net_pay is not None and net_pay > 0
    earnings = _amount(_first(EARNINGS, text, 1))
    period = PAY_PERIOD.search(text)
    employee_name = _first(EMPLOYEE_NAME, text, 1)
    employee_id = _first(EMPLOYEE_ID, text, 1)
    has_deductions = bool(DEDUCTIONS.search(text))
    employer = _first(EMPLOYER, text)

    w = SALARY_SLIP_WEIGHTS
    confidence = 0
    if valid_net_pay:
        confidence += w["net_pay"]
    if earnings:
        confidence += w["earnings"]
    if period:
        confidence += w["pay_period"]
    if employee_name or employee_id:
        confidence += w["employee"]
    if has_deductions:
        confidence += w["deductions"]
    if employer:
        confidence += w["employer"]

    return _finish(
        DocumentType.SALARY_SLIP,
        confidence,
        {
            "employee_name": employee_name,
            "employee_id": employee_id,
            "employer": employer,
            "pay_period": f"{period.group(1)} {period.group(2)}" if period else None,
            "gross_earnings": earnings,
            "net_pay": net_pay,
        },
        {
            "has_valid_net_pay": valid_net_pay,
            "has_earnings": bool(earnings),
            "has_pay_period": bool(period),
            "has_employee_identity": bool(employee_name or employee_id),
            "has_deductions": has_deductions,
            "has_employer": bool(employer),
        },
    )


# ---------------------------------------------------------------------------
# Generic fallback and dispatch
# ---------------------------------------------------------------------------


def analyze_generic(text: str) -> DocumentAnalysisResult:
    has_content = len(text) > GENERIC_MIN_LENGTH
    return DocumentAnalysisResult(
        extracted_data={
            "text_content": text[:500],
            "word_count": len(text.split()),
            "has_content": has_content,
        },
        confidence=60 if has_content else 20,
        is_valid=has_content,
        checks={
            "has_minimum_content": has_content,
            "is_readable": len(text) > 20,
        },
    )


ANALYZERS: Dict[DocumentType, Callable[[str], DocumentAnalysisResult]] = {
    DocumentType.AADHAAR: analyze_aadhaar,
    DocumentType.PAN: analyze_pan,
    DocumentType.DRIVING_LICENSE: analyze_driving_license,
    DocumentType.BANK_STATEMENT: analyze_bank_statement,
    DocumentType.SALARY_SLIP: analyze_salary_slip,
    DocumentType.GENERIC: analyze_generic,
}

_missing: List[DocumentType] = [t for t in DocumentType if t not in ANALYZERS]
if _missing:
    raise RuntimeError(f"No analyzer registered for: {', '.join(t.value for t in _missing)}")


def analyze_document(text: str, document_type: DocumentType) -> DocumentAnalysisResult:
    return ANALYZERS[document_type](text or "")
