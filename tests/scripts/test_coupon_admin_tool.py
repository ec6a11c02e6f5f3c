from __future__ import annotations

import argparse
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from scripts.coupon_admin_tool import _parse_amount, parse_utc_datetime


def test_parse_utc_datetime_assumes_utc_for_naive_values() -> None:
    assert parse_utc_datetime("2026-10-01T09:30:00") == datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)


def test_parse_utc_datetime_converts_offsets_to_utc() -> None:
    parsed = parse_utc_datetime("2026-10-01T15:00:00+05:30")
    assert parsed == datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)
    assert parsed.utcoffset() == timezone.utc.utcoffset(None)


def test_parse_amount_accepts_decimal_strings() -> None:
    assert _parse_amount("149.50") == Decimal("149.50")


def test_parse_amount_rejects_garbage() -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_amount("ten rupees")
