"""
Cleansing rules shared by the silver normalizers.

Categorical fields are mapped through small closed lookup tables. Anything a
table does not know, including empty values, falls through to NOT_AVAILABLE.
Each table also recognises its own labels so already-cleaned values map to
themselves.
"""
import re
from typing import Dict

import pandas as pd

NOT_AVAILABLE = "n/a"

MARITAL_STATUS = {
    "S": "Single",
    "M": "Married",
}

GENDER = {
    "F": "Female",
    "M": "Male",
}

PRODUCT_LINE = {
    "M": "Mountain",
    "R": "Road",
    "S": "Other Sales",
    "T": "Touring",
}

COUNTRY_ALIASES = {
    "US": "United States",
    "USA": "United States",
    "UNITED STATES": "United States",
    "DE": "Germany",
    "GERMANY": "Germany",
}

CUSTOMER_ID_PREFIX = "NAS"

# 8-digit integer dates (yyyymmdd)
MIN_INT_DATE = 10_000_000
MAX_INT_DATE = 99_999_999

_CONTROL_CHARS = re.compile(r"[\r\n]")
# Unicode-aware: letters and digits of any script survive
_PUNCTUATION = re.compile(r"[\W_]")


def _with_labels(table: Dict[str, str]) -> Dict[str, str]:
    lookup = dict(table)
    lookup.update({label.upper(): label for label in table.values()})
    lookup[NOT_AVAILABLE.upper()] = NOT_AVAILABLE
    return lookup


def clean_text(series: pd.Series) -> pd.Series:
    """Strip CR/LF characters and surrounding whitespace; empty strings become NA."""
    text = series.astype("string")
    text = text.str.replace(_CONTROL_CHARS, "", regex=True).str.strip()
    return text.mask((text == "").fillna(False))


def map_code(series: pd.Series, table: Dict[str, str]) -> pd.Series:
    """
    Map raw codes to labels with a trimmed, case-insensitive lookup.

    Args:
        series: Raw code values
        table: Upper-case code -> label mapping

    Returns:
        String series of labels, NOT_AVAILABLE where no entry matches
    """
    keys = clean_text(series).str.upper()
    labels = keys.map(_with_labels(table)).astype("string")
    return labels.fillna(NOT_AVAILABLE)


def normalize_country(series: pd.Series) -> pd.Series:
    """Collapse known country aliases; keep other names trimmed; empty -> n/a."""
    cleaned = clean_text(series)
    aliases = cleaned.str.upper().map(COUNTRY_ALIASES).astype("string")
    return aliases.fillna(cleaned).fillna(NOT_AVAILABLE)


def strip_prefix(series: pd.Series, prefix: str = CUSTOMER_ID_PREFIX) -> pd.Series:
    """
    Remove one leading prefix.

    Only a single occurrence is stripped per call: "NASNAS1" becomes "NAS1",
    and a second pass would take it on to "1".
    """
    text = clean_text(series)
    return text.str.replace(f"^{re.escape(prefix)}", "", regex=True)


def strip_punctuation(series: pd.Series) -> pd.Series:
    return clean_text(series).str.replace(_PUNCTUATION, "", regex=True)


def is_valid_int_date(value) -> bool:
    """
    True when value is a positive integer with exactly 8 digits.

    Only the shape is checked: 20240230 passes even though February has
    no 30th.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    if not number.is_integer():
        return False
    return MIN_INT_DATE <= number <= MAX_INT_DATE


def validate_int_dates(series: pd.Series) -> pd.Series:
    """Vectorised is_valid_int_date; invalid entries become NA (Int64)."""
    numbers = pd.to_numeric(series, errors="coerce").astype("float64")
    valid = numbers.notna() & (numbers % 1 == 0) & numbers.between(MIN_INT_DATE, MAX_INT_DATE)
    return numbers.where(valid).astype("Int64")


def to_number(series: pd.Series) -> pd.Series:
    return pd.to_numeric(clean_text(series), errors="coerce").astype("float64")


def to_int(series: pd.Series) -> pd.Series:
    numbers = to_number(series)
    return numbers.where(numbers % 1 == 0).astype("Int64")


def to_timestamp(series: pd.Series) -> pd.Series:
    """
    Parse dates/timestamps; unparseable values become NaT.

    Values carrying a UTC offset are converted to UTC and every result is
    returned tz-naive, so naive and offset-bearing inputs can be mixed.
    """
    if pd.api.types.is_datetime64_any_dtype(series):
        parsed = series
    else:
        parsed = pd.to_datetime(clean_text(series), errors="coerce", format="mixed", utc=True)
    if parsed.dt.tz is not None:
        parsed = parsed.dt.tz_convert(None)
    return parsed
