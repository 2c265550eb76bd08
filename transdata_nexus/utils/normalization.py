"""
Name Normalization

Harmonizes free-text party and country names so that spelling variants of
the same company or country aggregate together:
- Company names: whitespace, trailing punctuation, legal-entity suffixes,
  title case with acronyms kept upper case
- Country names: alias table, otherwise title case
- Placeholder parties ("TO ORDER", "N/A", ...) detection
- Product category lookup for the platform dashboard
"""

import re
from typing import Dict, List, Tuple


# =============================================================================
# COMPANY NAMES
# =============================================================================

UNKNOWN_COMPANY = 'Unknown Company'

# Applied in order, whole-word and case-insensitive
LEGAL_ENTITY_MAPPINGS: List[Tuple[str, str]] = [
    # Private Limited variations
    ('PVT. LTD.', 'PRIVATE LIMITED'),
    ('PVT. LTD', 'PRIVATE LIMITED'),
    ('PVT LTD', 'PRIVATE LIMITED'),
    ('PRIVATE LTD.', 'PRIVATE LIMITED'),
    ('PRIVATE LTD', 'PRIVATE LIMITED'),
    ('PRIVATE LIMITED.', 'PRIVATE LIMITED'),

    # Limited / Inc / Corp / LLC / Co
    ('LTD.', 'LTD'),
    ('LIMITED.', 'LIMITED'),
    ('INC.', 'INC'),
    ('INCORPORATED', 'INC'),
    ('CORP.', 'CORP'),
    ('CORPORATION', 'CORP'),
    ('L.L.C.', 'LLC'),
    ('L.L.C', 'LLC'),
    ('LLC.', 'LLC'),
    ('CO.', 'CO'),
    ('COMPANY', 'CO'),

    # Pty variations
    ('PTY. LTD.', 'PTY LIMITED'),
    ('PTY. LTD', 'PTY LIMITED'),
    ('PTY LTD', 'PTY LIMITED'),
    ('PTY LIMITED.', 'PTY LIMITED'),
]

# Suffixes kept upper case after title-casing
LEGAL_ACRONYMS = [
    'INC', 'CORP', 'LLC', 'LTD', 'CO', 'GMBH', 'AG', 'SA', 'SAS', 'SPA', 'SRL',
    'BV', 'NV', 'AB', 'OY', 'AS', 'KK', 'PT', 'TBK', 'PJSC', 'JSC', 'LLP',
    'PLC', 'LP', 'GP',
]

_TRAILING_PUNCTUATION = re.compile(r"[.,'\"]+$")
_INTERNATIONAL_DOTTED = re.compile(r'\b(' + '|'.join(LEGAL_ACRONYMS) + r')\.(?=\s|$)', re.IGNORECASE)


def _entity_pattern(variant: str) -> re.Pattern:
    # \b cannot anchor after a trailing period, so use whitespace/end lookarounds
    return re.compile(r'(?<![\w.])' + re.escape(variant) + r'(?![\w])', re.IGNORECASE)


_ENTITY_PATTERNS = [(_entity_pattern(variant), target) for variant, target in LEGAL_ENTITY_MAPPINGS]
_ACRONYM_PATTERNS = [(re.compile(r'\b' + acronym + r'\b', re.IGNORECASE), acronym) for acronym in LEGAL_ACRONYMS]


def normalize_company_name(name: str) -> str:
    """
    Standardize a company name

    Args:
        name: Raw supplier or buyer name

    Returns:
        Normalized name, or "Unknown Company" for blanks
    """
    if name is None or str(name).strip() == '':
        return UNKNOWN_COMPANY

    normalized = re.sub(r'\s+', ' ', str(name).strip())
    normalized = _TRAILING_PUNCTUATION.sub('', normalized)

    for pattern, target in _ENTITY_PATTERNS:
        normalized = pattern.sub(target, normalized)
    normalized = _INTERNATIONAL_DOTTED.sub(lambda m: m.group(1), normalized)

    normalized = re.sub(r"\b\w", lambda m: m.group(0).upper(), normalized.lower())

    for pattern, acronym in _ACRONYM_PATTERNS:
        normalized = pattern.sub(acronym, normalized)

    return normalized


# =============================================================================
# COUNTRY NAMES
# =============================================================================

COUNTRY_ALIASES: Dict[str, str] = {
    'UK': 'UNITED KINGDOM',
    'U.K.': 'UNITED KINGDOM',
    'U.K': 'UNITED KINGDOM',
    'GREAT BRITAIN': 'UNITED KINGDOM',
    'UNITED KINGDOM': 'UNITED KINGDOM',
    'USA': 'UNITED STATES',
    'US': 'UNITED STATES',
    'U.S.': 'UNITED STATES',
    'U.S': 'UNITED STATES',
    'U.S.A.': 'UNITED STATES',
    'U.S.A': 'UNITED STATES',
    'UNITED STATES OF AMERICA': 'UNITED STATES',
    'UNITED STATES': 'UNITED STATES',
    'RUSSIAN FEDERATION': 'RUSSIA',
    'RUSSIA': 'RUSSIA',
    'SOUTH KOREA': 'KOREA',
    'KOREA, REPUBLIC OF': 'KOREA',
    'KOREA,REPUBLIC OF': 'KOREA',
    'REPUBLIC OF KOREA': 'KOREA',
    'KOREA REPUBLIC OF': 'KOREA',
    'KOREA': 'KOREA',
    'UAE': 'UNITED ARAB EMIRATES',
    'U.A.E.': 'UNITED ARAB EMIRATES',
    'U.A.E': 'UNITED ARAB EMIRATES',
    'UNITED ARAB EMIRATES': 'UNITED ARAB EMIRATES',
    'SWAZILAND': 'ESWATINI',
    'ESWATINI': 'ESWATINI',
    'HONG KONG': 'HONG KONG',
    'NETHERLANDS ANTILLES': 'NETHERLANDS ANTILLES',
    'TURKS AND CAICOS ISLANDS': 'TURKS & CAICOS ISLANDS',
    'TURKS & CAICOS': 'TURKS & CAICOS ISLANDS',
    'TURKS & CAICOS ISLANDS': 'TURKS & CAICOS ISLANDS',
}


def normalize_country_name(name: str) -> str:
    """
    Standardize a country name

    Known aliases map to a canonical upper-case name; anything else is
    title-cased word by word. Blank input is returned unchanged.
    """
    if not name:
        return name

    normalized = re.sub(r'\s+', ' ', str(name)).strip()
    alias = COUNTRY_ALIASES.get(normalized.upper())
    if alias:
        return alias

    return ' '.join(word[:1].upper() + word[1:].lower() for word in normalized.split(' '))


# =============================================================================
# PLACEHOLDER PARTIES
# =============================================================================

PLACEHOLDER_NAMES = {
    'na', 'n/a', 'null', 'undefined', 'to', 'to order of', 'to order', 'order of',
    'unknown', 'unknown customer', 'customer', 'buyer', 'client', 'end user',
    'end-user', 'enduser', 'recipient', 'consignee', 'importer', 'purchaser',
}


def is_placeholder_party(name: str) -> bool:
    """True for blank, too-short or generic consignee names"""
    if not name or name.strip() == '':
        return True
    cleaned = name.strip()
    return len(cleaned) < 2 or cleaned.lower() in PLACEHOLDER_NAMES


# =============================================================================
# "OTHERS" BUCKET LABELS
# =============================================================================

_LABEL_SUFFIXES = [' Ltd', ' Limited', ' Inc', ' Corporation', ' Corp', ' Company', ' Co', ' Pvt', ' Private']

_SHORT_COUNTRY_NAMES = {
    'United States': 'US',
    'United Kingdom': 'UK',
    'United Arab Emirates': 'UAE',
    'South Africa': 'SA',
    'New Zealand': 'NZ',
}


def others_label(parent_name: str, kind: str = 'supplier') -> str:
    """
    Label for the remainder row below a top-5 breakdown

    Args:
        parent_name: Supplier or country the breakdown belongs to
        kind: 'supplier' (customers) or 'country' (importers)

    Returns:
        e.g. "Rest of Acme's customers", "Rest of US's importers"
    """
    clean_name = parent_name.strip()
    for suffix in _LABEL_SUFFIXES:
        if clean_name.endswith(suffix):
            clean_name = clean_name[:-len(suffix)]

    if kind == 'country':
        clean_name = _SHORT_COUNTRY_NAMES.get(clean_name, clean_name)
        return f"Rest of {clean_name}'s importers"

    if clean_name.endswith('s'):
        return f"Rest of {clean_name}' customers"
    return f"Rest of {clean_name}'s customers"


# =============================================================================
# PRODUCT CATEGORIES
# =============================================================================

PRODUCT_CATEGORIES: List[Tuple[Tuple[str, ...], str]] = [
    (('paracetamol', 'acetaminophen'), 'Analgesics'),
    (('metformin',), 'Antidiabetics'),
    (('amoxicillin', 'antibiotic'), 'Antibiotics'),
    (('omeprazole', 'pantoprazole'), 'PPIs'),
    (('atorvastatin', 'simvastatin'), 'Statins'),
]


def product_category(description: str) -> str:
    """Therapeutic category from keywords in a product description"""
    text = (description or '').lower()
    for keywords, category in PRODUCT_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return 'Others'
