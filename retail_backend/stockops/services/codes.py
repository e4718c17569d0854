# stockops/services/codes.py

"""
OPERATION CODES

Shape:
    {PREFIX}-S{store}-{YYMMDD}-{CATEGORY}-{TERMINAL}-{NNN}

- PREFIX    settings.STOCKOPS_CODE_PREFIX (default "WEB")
- CATEGORY  CLR for stock operations, SLO for sale bills
- TERMINAL  caller's terminal token, else settings.STOCKOPS_DEFAULT_TERMINAL
- NNN       random 001-999

The suffix is not guaranteed unique; StockOperation.code carries a
unique constraint and a collision surfaces as a persistence failure.
"""

from __future__ import annotations

import random
import re

from django.conf import settings
from django.utils import timezone

CATEGORY_CLEARANCE = "CLR"
CATEGORY_SALE = "SLO"

SUFFIX_MIN = 1
SUFFIX_MAX = 999

_TERMINAL_CLEAN = re.compile(r"[^A-Z0-9]")


def normalize_terminal(terminal_code: str = "") -> str:
    token = _TERMINAL_CLEAN.sub("", (terminal_code or "").upper())[:8]
    if token:
        return token
    return getattr(settings, "STOCKOPS_DEFAULT_TERMINAL", "POS")


def _build(*, category: str, store, terminal_code: str, now, rng) -> str:
    now = now or timezone.now()
    rng = rng or random
    prefix = getattr(settings, "STOCKOPS_CODE_PREFIX", "WEB")
    suffix = rng.randint(SUFFIX_MIN, SUFFIX_MAX)

    return "-".join(
        [
            prefix,
            store.label,
            timezone.localtime(now).strftime("%y%m%d") if timezone.is_aware(now) else now.strftime("%y%m%d"),
            category,
            normalize_terminal(terminal_code),
            f"{suffix:03d}",
        ]
    )


def generate_operation_code(*, store, terminal_code: str = "", now=None, rng=None) -> str:
    return _build(
        category=CATEGORY_CLEARANCE,
        store=store,
        terminal_code=terminal_code,
        now=now,
        rng=rng,
    )


def generate_bill_code(*, store, terminal_code: str = "", now=None, rng=None) -> str:
    return _build(
        category=CATEGORY_SALE,
        store=store,
        terminal_code=terminal_code,
        now=now,
        rng=rng,
    )


def generate_transfer_code(*, now=None, rng=None) -> str:
    now = now or timezone.now()
    rng = rng or random
    return f"TR-{now.strftime('%Y%m%d')}-{rng.randint(1, 9999):04d}"
