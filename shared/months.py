"""English/French month alias table used to resolve spreadsheet tab names."""

from __future__ import annotations

import re
import unicodedata

ENGLISH_TO_FRENCH: dict[str, str] = {
    "January": "Janvier",
    "February": "Février",
    "March": "Mars",
    "April": "Avril",
    "May": "Mai",
    "June": "Juin",
    "July": "Juillet",
    "August": "Août",
    "September": "Septembre",
    "October": "Octobre",
    "November": "Novembre",
    "December": "Décembre",
}
FRENCH_TO_ENGLISH: dict[str, str] = {french: english for english, french in ENGLISH_TO_FRENCH.items()}
ENGLISH_MONTHS: tuple[str, ...] = tuple(ENGLISH_TO_FRENCH)

_ABBREVIATIONS: dict[str, str] = {month[:3].lower(): month for month in ENGLISH_MONTHS}


def _strip_accents(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(char for char in normalized if not unicodedata.combining(char))


_ACCENTLESS_FRENCH: dict[str, str] = {
    _strip_accents(french).lower(): english for french, english in FRENCH_TO_ENGLISH.items()
}
_TEXT_TOKENS: dict[str, str] = {
    **{month.lower(): month for month in ENGLISH_MONTHS},
    **{french.lower(): english for french, english in FRENCH_TO_ENGLISH.items()},
    **_ACCENTLESS_FRENCH,
}
_TEXT_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(token) for token in sorted(_TEXT_TOKENS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


def normalize_month_name(value: str) -> str:
    """Capitalize the first letter and lowercase the rest."""

    stripped = value.strip()
    return stripped[:1].upper() + stripped[1:].lower()


def english_to_french(month: str) -> str | None:
    return ENGLISH_TO_FRENCH.get(normalize_month_name(month))


def french_to_english(month: str) -> str | None:
    return FRENCH_TO_ENGLISH.get(normalize_month_name(month))


def is_known_month(value: str) -> bool:
    """Return True when the value is an English or French month name."""

    normalized = normalize_month_name(value)
    return normalized in ENGLISH_TO_FRENCH or normalized in FRENCH_TO_ENGLISH


def to_english_month(value: str) -> str | None:
    """Resolve English, French, accent-less French or 3-letter prefixes."""

    if not isinstance(value, str) or not value.strip():
        return None

    normalized = normalize_month_name(value.strip().rstrip("."))
    if normalized in ENGLISH_TO_FRENCH:
        return normalized
    if normalized in FRENCH_TO_ENGLISH:
        return FRENCH_TO_ENGLISH[normalized]

    lowered = normalized.lower()
    if lowered in _ACCENTLESS_FRENCH:
        return _ACCENTLESS_FRENCH[lowered]
    if len(lowered) >= 3 and lowered[:3] in _ABBREVIATIONS:
        candidate = _ABBREVIATIONS[lowered[:3]]
        if candidate.lower().startswith(lowered) or len(lowered) == 3:
            return candidate
    return None


def tab_name_for(english_month: str) -> str:
    """Return the spreadsheet tab holding rows for the month."""

    normalized = normalize_month_name(english_month)
    return ENGLISH_TO_FRENCH.get(normalized, normalized)


def month_number(english_month: str) -> int:
    return ENGLISH_MONTHS.index(normalize_month_name(english_month)) + 1


def find_month_in_text(text: str) -> str | None:
    """Return the English month for the first month name found in free text."""

    match = _TEXT_PATTERN.search(text or "")
    if match is None:
        return None
    return _TEXT_TOKENS[match.group(1).lower()]
