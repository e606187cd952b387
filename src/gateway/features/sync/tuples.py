"""Parsing and formatting of compact ``code:price:stock:priorPrice`` batches."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Tuple, Union

from .schemas import SyncItemError, SyncTuple

TUPLE_FORMAT = "code:price:stock[:priorPrice]"


def round_half_up(value: Any) -> int:
    """Rounds a number or numeric string to an integer, halves away from zero.

    Raises:
        ValueError: If ``value`` is not numeric.
    """
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a number") from None
    if not number.is_finite():
        raise ValueError(f"'{value}' is not a number")
    return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_sync_tuple(raw: str) -> SyncTuple:
    """
    Parses one compact tuple.

    Raises:
        ValueError: If fields are missing, the code is empty or a number is malformed.
    """
    parts = [part.strip() for part in raw.split(":")]
    if len(parts) < 3:
        raise ValueError(f"expected {TUPLE_FORMAT}")
    code = parts[0]
    if not code:
        raise ValueError("empty product code")
    price_before = parts[3] if len(parts) > 3 and parts[3] else "0"
    return SyncTuple(
        code=code,
        price_now=round_half_up(parts[1]),
        stock=round_half_up(parts[2]),
        price_before=round_half_up(price_before),
    )


def split_batch(raw: Union[str, Iterable[str]]) -> List[str]:
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    return [item.strip() for item in items if item and item.strip()]


def parse_sync_batch(raw: Union[str, Iterable[str]]) -> Tuple[List[SyncTuple], List[SyncItemError]]:
    """Parses a batch; malformed entries become per-item errors instead of failing the batch."""
    tuples: List[SyncTuple] = []
    errors: List[SyncItemError] = []
    for item in split_batch(raw):
        try:
            tuples.append(parse_sync_tuple(item))
        except ValueError as exc:
            code = item.split(":", 1)[0].strip() or None
            errors.append(SyncItemError(item=item, code=code, error=str(exc)))
    return tuples, errors


def format_sync_batch(tuples: Iterable[SyncTuple]) -> str:
    return ",".join(item.compact() for item in tuples)


def batch_codes(raw: Union[str, Iterable[str]]) -> List[str]:
    """Product codes of a batch of codes or compact tuples, in order, without duplicates."""
    codes: List[str] = []
    for item in split_batch(raw):
        code = item.split(":", 1)[0].strip()
        if code and code not in codes:
            codes.append(code)
    return codes
