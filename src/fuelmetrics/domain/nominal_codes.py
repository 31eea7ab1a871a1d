"""Nominal code taxonomy.

Maps 4-digit ledger nominal codes to a semantic category and the rule used
to sum their amounts. The table is a compiled-in constant; codes it does not
know are left out of every metric rather than rejected.
"""

from types import MappingProxyType
from typing import Optional, Union

from fuelmetrics.domain.entities import CodeCategory, CodeSelection, NominalCode, SignRule

OVERHEAD_LOW = "7000"
OVERHEAD_HIGH = "7999"

OVERHEAD_BUCKETS = MappingProxyType(
    {
        70: "Labour",
        71: "Rent & Rates",
        72: "Utilities",
        73: "Maintenance",
        74: "Insurance",
        75: "Professional Fees",
        76: "Marketing",
        77: "Travel",
        78: "Repairs & Renewals",
        79: "Bank & Finance",
    }
)


def _entries(category: CodeCategory, sign_rule: SignRule, names: dict[str, str]):
    return {
        code: NominalCode(code=code, name=name, category=category, sign_rule=sign_rule)
        for code, name in names.items()
    }


NOMINAL_CODES = MappingProxyType(
    {
        **_entries(
            CodeCategory.FUEL_SALE,
            SignRule.ABSOLUTE,
            {
                "4000": "Petrol Sales",
                "4001": "Diesel Sales",
                "4002": "Super Petrol Sales",
                "4003": "Super Diesel Sales",
                "4008": "AdBlue Sales",
            },
        ),
        **_entries(
            CodeCategory.FUEL_PURCHASE,
            SignRule.ABSOLUTE,
            {
                "5000": "Petrol Purchases",
                "5001": "Diesel Purchases",
                "5003": "Super Petrol Purchases",
                "5004": "Super Diesel Purchases",
                "5014": "AdBlue Purchases",
            },
        ),
        **_entries(
            CodeCategory.OTHER_INCOME,
            SignRule.ABSOLUTE,
            {
                "6100": "Fuel Commissions",
                "6101": "Daily Facility Fees",
                "6102": "Valeting Commissions",
            },
        ),
        **_entries(
            CodeCategory.LABOUR,
            SignRule.ABSOLUTE,
            {
                "7000": "Gross Wages",
                "7006": "Employers N.I.",
                "7007": "Staff Pensions",
            },
        ),
        **_entries(
            CodeCategory.BANK_ACCOUNT,
            SignRule.AS_IS,
            {
                "1200": "PRL HSBC",
                "1223": "Edmonton A/C",
                "1224": "Lloyds Bank",
            },
        ),
    }
)


def normalize_code(code: Union[str, int, None]) -> Optional[str]:
    """Return the canonical 4-digit string for a code, or None if malformed."""
    if code is None or isinstance(code, bool):
        return None
    text = str(code).strip()
    if not text.isdigit() or len(text) > 4:
        return None
    return text.zfill(4)


def is_overhead(code: Union[str, int, None]) -> bool:
    normalized = normalize_code(code)
    return normalized is not None and OVERHEAD_LOW <= normalized <= OVERHEAD_HIGH


def overhead_bucket(code: Union[str, int, None]) -> Optional[str]:
    """Return the overhead bucket name (by hundred) for a 7000-7999 code."""
    if not is_overhead(code):
        return None
    return OVERHEAD_BUCKETS[int(normalize_code(code)) // 100]


def classify(code: Union[str, int, None]) -> Optional[NominalCode]:
    """Classify a nominal code.

    Explicit codes win over the overhead range, so 7006 classifies as a
    labour component even though it also falls in the 7000s overhead bucket.

    Args:
        code: Nominal code as a string or integer

    Returns:
        The taxonomy entry, or None when the code is not classified
    """
    normalized = normalize_code(code)
    if normalized is None:
        return None
    entry = NOMINAL_CODES.get(normalized)
    if entry is not None:
        return entry
    if is_overhead(normalized):
        return NominalCode(
            code=normalized,
            name=overhead_bucket(normalized),
            category=CodeCategory.OVERHEAD,
            sign_rule=SignRule.ABSOLUTE,
        )
    return None


def codes_for(category: CodeCategory) -> tuple[str, ...]:
    """Return the explicitly listed codes of a category, in taxonomy order."""
    return tuple(
        code for code, entry in NOMINAL_CODES.items() if entry.category == category
    )


def selection_for(category: CodeCategory) -> CodeSelection:
    """Return the ledger code selection for a category."""
    if category == CodeCategory.OVERHEAD:
        return CodeSelection(low=OVERHEAD_LOW, high=OVERHEAD_HIGH)
    return CodeSelection(codes=codes_for(category))
