import re
import string
from decimal import Decimal
from typing import List, NamedTuple, Optional, Tuple

from cinebook.models.seat import SeatTier

ROWS = 8
COLUMNS = 10

# Single source of truth for seat pricing; a stored per-seat override is the exception
TIER_PRICES = {
    SeatTier.STANDARD: Decimal("150.00"),
    SeatTier.PREMIUM: Decimal("250.00"),
    SeatTier.VIP: Decimal("400.00"),
}

_LABEL_RE = re.compile(r"^([A-Z])([1-9][0-9]*)$")


class SeatSpec(NamedTuple):
    row: str
    col: int
    tier: SeatTier


def tier_for_row(index: int) -> SeatTier:
    """Front two rows are VIP, the next three Premium, the rest Standard."""
    if index < 2:
        return SeatTier.VIP
    if index < 5:
        return SeatTier.PREMIUM
    return SeatTier.STANDARD


def build_layout(rows: int = ROWS, columns: int = COLUMNS) -> List[SeatSpec]:
    """Return the seat grid for a new show, row by row, columns starting at 1."""
    return [
        SeatSpec(row=string.ascii_uppercase[i], col=col, tier=tier_for_row(i))
        for i in range(rows)
        for col in range(1, columns + 1)
    ]


def seat_label(row: str, col: int) -> str:
    return f"{row}{col}"


def normalize_label(label: str) -> str:
    return label.strip().upper()


def parse_seat_label(label: str) -> Optional[Tuple[str, int]]:
    """Split 'C7' into ('C', 7). Returns None for anything that is not a seat label."""
    match = _LABEL_RE.match(normalize_label(label))
    if not match:
        return None
    return match.group(1), int(match.group(2))


def price_for(tier: SeatTier, override: Optional[Decimal] = None) -> Decimal:
    if override is not None:
        return Decimal(override)
    return TIER_PRICES[SeatTier(tier)]
