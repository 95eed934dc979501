"""
Athletic category engine.

The category code is derived from the athlete's age and gender using the
FIDAL/UISP age-range table. A category stored on the member record is an
explicit override and always wins.

Age is counted in whole years on the reference date (default: today).
"""
from __future__ import annotations

from datetime import date
from typing import NamedTuple, Optional


class CategoryRange(NamedTuple):
    gender:   str
    age_from: int
    age_to:   int
    code:     str


CATEGORY_RANGES: list[CategoryRange] = [
    # Women
    CategoryRange("F",  0,  5, "Baby /F"),
    CategoryRange("F",  6,  7, "Es 6/F"),
    CategoryRange("F",  8,  9, "Es 8/F"),
    CategoryRange("F", 10, 11, "Es 10/F"),
    CategoryRange("F", 12, 13, "Rag /F"),
    CategoryRange("F", 14, 15, "Cad /F"),
    CategoryRange("F", 16, 17, "All /F"),
    CategoryRange("F", 18, 19, "Jun /F"),
    CategoryRange("F", 20, 34, "Sen /F"),
    CategoryRange("F", 35, 99, "Am /F"),
    # Men
    CategoryRange("M",  0,  5, "Baby /M"),
    CategoryRange("M",  6,  7, "Es 6/M"),
    CategoryRange("M",  8,  9, "Es 8/M"),
    CategoryRange("M", 10, 11, "Es 10/M"),
    CategoryRange("M", 12, 13, "Rag /M"),
    CategoryRange("M", 14, 15, "Cad /M"),
    CategoryRange("M", 16, 17, "All /M"),
    CategoryRange("M", 18, 19, "Jun /M"),
    CategoryRange("M", 20, 34, "Sen /M"),
    CategoryRange("M", 35, 44, "Am A/M"),
    CategoryRange("M", 45, 54, "Am B/M"),
    CategoryRange("M", 55, 99, "Am C/M"),
]


def age_on(birth_date: date, on_date: date) -> int:
    """Completed years between birth_date and on_date (negative if not born yet)."""
    age = on_date.year - birth_date.year
    if (on_date.month, on_date.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def calculate_category(
    birth_date: Optional[date],
    gender: Optional[str],
    on_date: Optional[date] = None,
) -> Optional[str]:
    """
    Category code for an athlete, or None when it cannot be determined.

    Any gender other than "F" is classified in the men's table.
    """
    if birth_date is None or not gender:
        return None

    normalized = "F" if gender == "F" else "M"
    age = age_on(birth_date, on_date or date.today())
    if age < 0:
        return None

    for r in CATEGORY_RANGES:
        if r.gender == normalized and r.age_from <= age <= r.age_to:
            return r.code
    return None


def resolve_category(member, on_date: Optional[date] = None) -> Optional[str]:
    """Stored override when present, otherwise the calculated category."""
    if member.category:
        return member.category
    return calculate_category(member.birth_date, member.gender, on_date)
