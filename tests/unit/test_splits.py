from __future__ import annotations

from decimal import Decimal

import pytest

from txn_import.models.enums import SplitType
from txn_import.services.splits import parse_participants


def test_equal_bare_identifiers():
    result = parse_participants("a@x.com, b@x.com,c@x.com", SplitType.EQUAL)
    assert result.is_valid
    assert [p.identifier for p in result.participants] == ["a@x.com", "b@x.com", "c@x.com"]
    assert all(p.value is None for p in result.participants)


def test_equal_rejects_values():
    result = parse_participants("a@x.com:50,b@x.com", SplitType.EQUAL)
    assert result.errors == ["Participant 'a@x.com:50' must not have a value for EQUAL split"]


def test_empty_participants():
    assert parse_participants("  ", "EQUAL").errors == ["participants must list at least one participant"]


def test_empty_entry_position():
    result = parse_participants("a@x.com:50,,b@x.com:50", SplitType.PERCENTAGE)
    assert result.errors == ["Empty participant entry at position 2"]


def test_percentage_sum():
    assert parse_participants("a:70,b:30", SplitType.PERCENTAGE).is_valid
    result = parse_participants("a:50,b:40", SplitType.PERCENTAGE)
    assert result.errors == ["Percentages must sum to 100 (got 90)"]


def test_percentage_tolerance():
    assert parse_participants("a:33.33,b:33.33,c:33.34", SplitType.PERCENTAGE).is_valid
    assert parse_participants("a:33.33,b:33.33,c:33.33", SplitType.PERCENTAGE).is_valid
    assert not parse_participants("a:33.3,b:33.3,c:33.3", SplitType.PERCENTAGE).is_valid
    assert parse_participants(
        "a:33.3,b:33.3,c:33.3", SplitType.PERCENTAGE, percentage_tolerance=Decimal("0.1")
    ).is_valid


def test_percentage_malformed_entry_skips_sum_check():
    result = parse_participants("a:abc,b:10", SplitType.PERCENTAGE)
    assert result.errors == ["Invalid participant entry 'a:abc' (expected identifier:number)"]


def test_missing_value():
    result = parse_participants("a,b:100", SplitType.PERCENTAGE)
    assert result.errors == ["Invalid participant entry 'a' (expected identifier:number)"]


def test_exact_sum_against_amount():
    assert parse_participants("a:50000,b:50000", SplitType.EXACT, Decimal("100000")).is_valid
    result = parse_participants("a:50000,b:40000", SplitType.EXACT, Decimal("100000"))
    assert result.errors == ["Exact amounts must sum to the transaction amount 100000 (got 90000)"]


def test_exact_without_amount_skips_sum():
    assert parse_participants("a:1,b:2", SplitType.EXACT, None).is_valid


@pytest.mark.parametrize("value", ["0", "-1", "1.5"])
def test_shares_must_be_positive_integers(value):
    result = parse_participants(f"a:{value},b:1", SplitType.SHARES)
    assert result.errors == ["Shares for 'a' must be a positive integer"]


def test_shares_have_no_sum_constraint():
    result = parse_participants("a:2,b:1", SplitType.SHARES)
    assert result.is_valid
    assert [p.value for p in result.participants] == [Decimal(2), Decimal(1)]


def test_unknown_split_type_raises():
    with pytest.raises(ValueError):
        parse_participants("a:1", "HALF")


def test_percentage_sum_law():
    assert parse_participants("a:30,b:70", SplitType.PERCENTAGE).is_valid
    assert len(parse_participants("a:30,b:60", SplitType.PERCENTAGE).errors) == 1
