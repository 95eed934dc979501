"""
Unit tests — Input validation (validators.py).

Tests Pydantic v2 models against malformed operator input:
  - MemberSelection: empty, non-positive ids, duplicates, batch limit
  - RaceRegistrationCommand: command argument parsing
  - AthleteSignup: self-registration command parsing and field rules

All tests are synchronous; no database session required.
"""
from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from comunimo.validators import (
    AthleteSignup,
    MemberSelection,
    RaceRegistrationCommand,
    first_error_message,
)


# ─────────────────────────── MemberSelection ──────────────────────────────────

class TestMemberSelection:
    def test_single_member(self) -> None:
        assert MemberSelection(member_ids=[7]).member_ids == [7]

    def test_duplicates_collapsed_keeping_order(self) -> None:
        s = MemberSelection(member_ids=[3, 1, 3, 2, 1])
        assert s.member_ids == [3, 1, 2]

    def test_numeric_strings_coerced(self) -> None:
        assert MemberSelection(member_ids=["4", "5"]).member_ids == [4, 5]

    def test_hundred_members_accepted(self) -> None:
        assert len(MemberSelection(member_ids=list(range(1, 101))).member_ids) == 100

    def test_duplicates_do_not_count_towards_limit(self) -> None:
        ids = list(range(1, 101)) * 2
        assert len(MemberSelection(member_ids=ids).member_ids) == 100


class TestMemberSelectionInvalid:
    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            MemberSelection(member_ids=[])
        assert first_error_message(exc_info.value) == "Seleziona almeno un atleta da iscrivere."

    @pytest.mark.parametrize("bad", [[0], [-1], [1, 0]])
    def test_non_positive_rejected(self, bad: list) -> None:
        with pytest.raises(ValidationError):
            MemberSelection(member_ids=bad)

    def test_over_limit_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            MemberSelection(member_ids=list(range(1, 102)))
        assert "100" in first_error_message(exc_info.value)

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MemberSelection(member_ids=["abc"])


# ─────────────────────────── RaceRegistrationCommand ──────────────────────────

class TestRaceRegistrationCommand:
    def test_parse_space_separated(self) -> None:
        cmd = RaceRegistrationCommand.parse("12 3 40 41 42")
        assert cmd.race_id == 12
        assert cmd.society_id == 3
        assert cmd.member_ids == [40, 41, 42]

    def test_parse_commas_and_extra_spaces(self) -> None:
        cmd = RaceRegistrationCommand.parse(" 12  3  40,41 ,42 ")
        assert cmd.member_ids == [40, 41, 42]

    def test_too_few_arguments(self) -> None:
        with pytest.raises(ValueError, match="Uso"):
            RaceRegistrationCommand.parse("12 3")

    def test_empty_arguments(self) -> None:
        with pytest.raises(ValueError, match="Uso"):
            RaceRegistrationCommand.parse("")

    def test_non_integer_arguments(self) -> None:
        with pytest.raises(ValueError, match="interi"):
            RaceRegistrationCommand.parse("12 tre 40")

    def test_invalid_member_id_is_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            RaceRegistrationCommand.parse("12 3 0")


# ─────────────────────────── AthleteSignup ────────────────────────────────────

class TestAthleteSignup:
    def test_parse_full_command(self) -> None:
        s = AthleteSignup.parse(
            " Rossi ; Mario ; 1990-05-01 ; m ; 12345 ; uisp ; MO001 ; Atletica Carpi "
        )
        assert s.last_name == "Rossi"
        assert s.first_name == "Mario"
        assert s.birth_date == date(1990, 5, 1)
        assert s.gender == "M"
        assert s.membership_number == "12345"
        assert s.organization == "UISP"
        assert s.society_code == "MO001"
        assert s.society_name == "Atletica Carpi"
        assert s.category is None

    def test_society_is_optional(self) -> None:
        s = AthleteSignup.parse("Bianchi; Anna; 1985-01-10; F; A77; FIDAL")
        assert s.society_code is None
        assert s.society_name is None

    def test_blank_society_code_becomes_none(self) -> None:
        s = AthleteSignup.parse("Bianchi; Anna; 1985-01-10; F; A77; ALTRO; ; Podistica")
        assert s.society_code is None
        assert s.society_name == "Podistica"

    def test_too_few_fields(self) -> None:
        with pytest.raises(ValueError, match="Uso"):
            AthleteSignup.parse("Rossi; Mario; 1990-05-01")

    @pytest.mark.parametrize("args,message", [
        ("Rossi; ; 1990-05-01; M; 1; UISP", "obbligatori"),
        ("Rossi; Mario; 1990-05-01; X; 1; UISP", "Sesso"),
        ("Rossi; Mario; 1990-05-01; M; 1; ACME", "Ente"),
        ("Rossi; Mario; 2999-01-01; M; 1; UISP", "nascita"),
    ])
    def test_invalid_fields(self, args: str, message: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AthleteSignup.parse(args)
        assert message in first_error_message(exc_info.value)

    def test_malformed_date(self) -> None:
        with pytest.raises(ValidationError):
            AthleteSignup.parse("Rossi; Mario; 01/05/1990; M; 1; UISP")
