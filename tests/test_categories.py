"""
Unit tests — Athletic category engine (category_service.py).

Reference values follow the FIDAL/UISP age-range table. Every test pins the
reference date so results do not depend on when the suite runs.
"""
from __future__ import annotations

from datetime import date

import pytest

from comunimo.services.category_service import age_on, calculate_category, resolve_category

ON = date(2026, 6, 1)


# ─────────────────────────── Age ─────────────────────────────────────────────

@pytest.mark.parametrize("birth,expected", [
    (date(2000, 6, 1),  26),   # birthday today
    (date(2000, 6, 2),  25),   # birthday tomorrow
    (date(2000, 5, 31), 26),   # birthday yesterday
    (date(2026, 6, 1),   0),
    (date(2027, 1, 1),  -1),   # not born yet
])
def test_age_on(birth: date, expected: int) -> None:
    assert age_on(birth, ON) == expected


# ─────────────────────────── Category table ──────────────────────────────────

@pytest.mark.parametrize("birth,gender,expected", [
    (date(2023, 1, 1),  "M", "Baby /M"),
    (date(2019, 1, 1),  "F", "Es 6/F"),
    (date(2016, 1, 1),  "M", "Es 10/M"),
    (date(2013, 1, 1),  "F", "Rag /F"),
    (date(2011, 1, 1),  "M", "Cad /M"),
    (date(2009, 1, 1),  "F", "All /F"),
    (date(2007, 1, 1),  "M", "Jun /M"),
    (date(2000, 1, 1),  "F", "Sen /F"),
    (date(1980, 1, 1),  "F", "Am /F"),     # women: single masters band
    (date(1985, 1, 1),  "M", "Am A/M"),
    (date(1975, 1, 1),  "M", "Am B/M"),
    (date(1960, 1, 1),  "M", "Am C/M"),
])
def test_calculate_category(birth: date, gender: str, expected: str) -> None:
    assert calculate_category(birth, gender, ON) == expected


def test_band_boundary_uses_completed_years() -> None:
    # 35th birthday one day after the reference date → still senior
    assert calculate_category(date(1991, 6, 2), "M", ON) == "Sen /M"
    assert calculate_category(date(1991, 6, 1), "M", ON) == "Am A/M"


def test_unknown_gender_uses_mens_table() -> None:
    assert calculate_category(date(2000, 1, 1), "other", ON) == "Sen /M"


@pytest.mark.parametrize("birth,gender", [
    (None, "M"),
    (date(2000, 1, 1), None),
    (date(2000, 1, 1), ""),
    (date(2030, 1, 1), "F"),    # future birth date
    (date(1900, 1, 1), "M"),    # beyond the table
])
def test_undeterminable_category_is_none(birth, gender) -> None:
    assert calculate_category(birth, gender, ON) is None


# ─────────────────────────── Override ────────────────────────────────────────

def test_stored_category_overrides_calculation(make_member) -> None:
    m = make_member(date(2000, 1, 1), "M", category="Jun /M")
    assert resolve_category(m, ON) == "Jun /M"


def test_calculated_when_no_override(make_member) -> None:
    m = make_member(date(2000, 1, 1), "F")
    assert resolve_category(m, ON) == "Sen /F"


def test_no_data_no_override(make_member) -> None:
    assert resolve_category(make_member(None, None), ON) is None
