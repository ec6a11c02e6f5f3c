from __future__ import annotations

import re

_COUPON_NORMALIZE_PATTERN = re.compile(r"[\s-]+")
COUPON_CODE_PATTERN = re.compile(r"^[A-Z0-9_]{3,32}$")


def normalize_coupon_code(raw_code: str) -> str:
    normalized = raw_code.strip().upper()
    return _COUPON_NORMALIZE_PATTERN.sub("", normalized)


def is_well_formed_coupon_code(normalized_code: str) -> bool:
    return bool(COUPON_CODE_PATTERN.fullmatch(normalized_code))
