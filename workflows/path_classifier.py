"""Path classifier for uploaded case files.

Derives who a file belongs to, what kind of document it is and, for dated
document types, the period it covers, purely from the upload folder path and
filename. Results feed the standard naming convention::

    {who}_{documentType}_{date}

e.g. ``Applicant/Bank Statements/July 2024/statement.pdf`` becomes
``applicant_bankStatement_0724``.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

UNKNOWN_ENTITY = "unknown"
DEFAULT_DOCUMENT_TYPE = "document"

# Entity keywords, checked in this order against each path segment
ENTITY_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("applicant", "applicant"),
    ("main", "applicant"),
    ("primary", "applicant"),
    ("principal", "applicant"),
    ("sponsor", "sponsor"),
    ("partner", "sponsor"),
    ("spouse", "sponsor"),
    ("dependant", "dependant"),
    ("dependent", "dependant"),
    ("child", "dependant"),
    ("minor", "dependant"),
    ("shared", "shared"),
    ("common", "shared"),
    ("joint", "shared"),
)


@dataclass(frozen=True)
class TypeRule:
    """One ranked document-type rule.

    Attributes:
        rank: Evaluation order (lower runs first)
        keywords: Substrings matched against the lower-cased search text
        document_type: Type identifier, e.g. "bankStatement"
        label: Category display label used as a group tag
        has_date: Whether a date is extracted for this type
    """
    rank: int
    keywords: Tuple[str, ...]
    document_type: str
    label: str
    has_date: bool = False


TYPE_RULES: Tuple[TypeRule, ...] = (
    # Identity
    TypeRule(1, ("passport",), "passport", "Passport"),
    TypeRule(2, ("national_id", "national-id", "nationalid", "id_card", "id-card"),
             "nationalId", "National ID"),
    TypeRule(3, ("birth_certificate", "birth-certificate", "birthcertificate", "birth"),
             "birthCertificate", "Birth Certificate"),
    # Financial
    TypeRule(4, ("bank_statement", "bank-statement", "bankstatement", "bank"),
             "bankStatement", "Bank Statement", has_date=True),
    TypeRule(5, ("payslip", "pay_slip", "pay-slip", "salary"),
             "payslip", "Payslip", has_date=True),
    TypeRule(6, ("tax_return", "tax-return", "taxreturn", "tax", "hmrc"),
             "taxReturn", "Tax Return", has_date=True),
    # Employment
    TypeRule(7, ("employment_letter", "employment-letter", "employmentletter"),
             "employmentLetter", "Employment Letter"),
    TypeRule(8, ("employment_contract", "employment-contract", "employmentcontract", "contract"),
             "employmentContract", "Employment Contract"),
    # Education
    TypeRule(9, ("degree", "diploma", "certificate"),
             "educationCertificate", "Education Certificate"),
    TypeRule(10, ("transcript",), "transcript", "Transcript"),
    TypeRule(11, ("school_enrollment", "school-enrollment", "enrollment"),
             "schoolEnrollment", "School Enrollment"),
    # Relationship
    TypeRule(12, ("marriage_certificate", "marriage-certificate", "marriagecertificate",
                  "marriage", "wedding"),
             "marriageCertificate", "Marriage Certificate"),
    TypeRule(13, ("cohabitation", "relationship"),
             "proofOfCohabitation", "Proof of Cohabitation"),
    # Accommodation
    TypeRule(14, ("property_title", "property-title", "propertytitle", "property", "deed"),
             "propertyTitle", "Property Title"),
    TypeRule(15, ("accommodation", "lease", "tenancy"),
             "proofOfAccommodation", "Proof of Accommodation"),
    # Utilities
    TypeRule(16, ("utility", "electric", "electricity", "gas", "water", "bill"),
             "utilityBill", "Utility Bill", has_date=True),
    # Travel
    TypeRule(17, ("visa", "permit", "previous_visa", "previous-visa"), "visa", "Visa"),
    # Insurance
    TypeRule(18, ("insurance", "health_insurance", "health-insurance"),
             "insurance", "Insurance"),
    # Consent
    TypeRule(19, ("consent", "letter_of_consent", "letter-of-consent"),
             "letterOfConsent", "Letter of Consent"),
)

DOCUMENT_TYPE_LABELS: Dict[str, str] = {r.document_type: r.label for r in TYPE_RULES}

MONTH_NUMBERS: Tuple[Tuple[str, str], ...] = (
    ("january", "01"), ("jan", "01"),
    ("february", "02"), ("feb", "02"),
    ("march", "03"), ("mar", "03"),
    ("april", "04"), ("apr", "04"),
    ("may", "05"),
    ("june", "06"), ("jun", "06"),
    ("july", "07"), ("jul", "07"),
    ("august", "08"), ("aug", "08"),
    ("september", "09"), ("sep", "09"), ("sept", "09"),
    ("october", "10"), ("oct", "10"),
    ("november", "11"), ("nov", "11"),
    ("december", "12"), ("dec", "12"),
)
_MONTH_LOOKUP = dict(MONTH_NUMBERS)

_YEAR_RE = re.compile(r'20(2[0-9]|30)')
_MONTH_YEAR_RE = re.compile(r'([a-zA-Z]{3,9})[\s_-]?(20\d{2})', re.IGNORECASE)
_YEAR_MONTH_RE = re.compile(r'(20\d{2})[\s_-]?(\d{2})')


@dataclass(frozen=True)
class ParsedDocument:
    """Result of classifying one uploaded file path."""
    who: str
    document_type: str
    date: Optional[str]
    generated_name: str
    relative_path: str
    original_filename: str

    @property
    def label(self) -> Optional[str]:
        """Category label for the detected type (None for generic documents)."""
        return DOCUMENT_TYPE_LABELS.get(self.document_type)


def split_segments(relative_path: str) -> List[str]:
    """Split a path on either separator, dropping empty segments."""
    return [s for s in re.split(r'[/\\]', relative_path or "") if s]


def detect_entity(segments: List[str]) -> str:
    """Entity for the first segment containing a known keyword."""
    for segment in segments:
        lower = segment.lower()
        for keyword, entity in ENTITY_KEYWORDS:
            if keyword in lower:
                return entity
    return UNKNOWN_ENTITY


def match_type_rule(segments: List[str], filename: str) -> Optional[TypeRule]:
    """First rule (by rank) with a keyword in the joined path and filename."""
    search_text = " ".join(segments + [filename]).lower()
    for rule in sorted(TYPE_RULES, key=lambda r: r.rank):
        for keyword in rule.keywords:
            if keyword in search_text:
                return rule
    return None


def extract_date(segments: List[str], filename: str) -> Optional[str]:
    """Extract a MMYY date (or YY when only the year is known).

    Later parts override earlier ones. Compact forms like "Jan2024" or
    "2024-01" override an independently found month/year.
    """
    month: Optional[str] = None
    year: Optional[str] = None

    for part in segments + [filename]:
        lower = part.lower()

        for month_name, number in MONTH_NUMBERS:
            if month_name in lower:
                month = number
                break

        year_match = _YEAR_RE.search(part)
        if year_match:
            year = year_match.group(1)

        compact = _MONTH_YEAR_RE.search(part)
        if compact and compact.group(1).lower() in _MONTH_LOOKUP:
            month = _MONTH_LOOKUP[compact.group(1).lower()]
            year = compact.group(2)[2:]

        numeric = _YEAR_MONTH_RE.search(part)
        if numeric:
            year = numeric.group(1)[2:]
            month = numeric.group(2)

    if month and year:
        return f"{month}{year}"
    if year:
        return year
    return None


def classify_path(relative_path: str, filename: str) -> ParsedDocument:
    """Classify an uploaded file from its folder path and filename.

    Args:
        relative_path: Folder path at upload time (e.g. "Applicant/Bank/2024-07")
        filename: Original filename

    Returns:
        ParsedDocument with entity, type, optional date and generated name
    """
    segments = split_segments(relative_path)
    who = detect_entity(segments)

    rule = match_type_rule(segments, filename)
    document_type = rule.document_type if rule else DEFAULT_DOCUMENT_TYPE
    date = extract_date(segments, filename) if rule and rule.has_date else None

    generated_name = f"{who}_{document_type}"
    if date:
        generated_name += f"_{date}"

    return ParsedDocument(
        who=who,
        document_type=document_type,
        date=date,
        generated_name=generated_name,
        relative_path=relative_path,
        original_filename=filename,
    )


def describe_rules() -> List[str]:
    """One line per document-type rule, in evaluation order."""
    lines = []
    for rule in sorted(TYPE_RULES, key=lambda r: r.rank):
        dated = " (dated)" if rule.has_date else ""
        lines.append(f"{rule.rank:2}. {rule.document_type}{dated}: {', '.join(rule.keywords)}")
    return lines
