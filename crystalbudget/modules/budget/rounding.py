"""Remainder-fair distribution of amounts across percentage shares.

Uses the largest-remainder (Hamilton) method: every share is floored to a
whole unit, then the leftover units go one by one to the shares with the
largest fractional parts. Ties keep input order, so the result is
deterministic and the shares always add up to the total.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Iterable, List, Optional, Union, Mapping

from crystalbudget.core.events import Diagnostics, RoundingMismatch, record
from crystalbudget.core.numeric import ZERO, HUNDRED, safe_number, validate_amount

logger = logging.getLogger(__name__)

ROUNDING_TOLERANCE = Decimal('0.01')
LOW_UTILIZATION_PERCENT = Decimal('50')
CENT = Decimal('0.01')
UNIT = Decimal('1')


@dataclass
class Share:
    id: str
    weight_percent: Decimal
    name: Optional[str] = None


@dataclass
class DistributedShare:
    id: str
    amount: Decimal
    name: Optional[str] = None


@dataclass
class PercentageEntry:
    id: str
    value: Decimal


@dataclass
class PercentageCheck:
    is_valid: bool
    total: Decimal
    message: Optional[str] = None


def _coerce_share(share: Union[Share, Mapping]) -> Share:
    if isinstance(share, Share):
        return share
    weight = share.get('weight_percent', share.get('percentage', 0))
    return Share(id=share['id'], weight_percent=weight, name=share.get('name'))


def _coerce_entry(entry: Union[PercentageEntry, Mapping]) -> PercentageEntry:
    if isinstance(entry, PercentageEntry):
        return PercentageEntry(entry.id, safe_number(entry.value))
    return PercentageEntry(entry['id'], safe_number(entry.get('value')))


def distribute_with_rounding(shares: Iterable[Union[Share, Mapping]], total,
                             tolerance: Decimal = ROUNDING_TOLERANCE,
                             diagnostics: Optional[Diagnostics] = None) -> List[DistributedShare]:
    """Split total across shares by weight, conserving the total exactly.

    Args:
        shares: ``Share`` objects or mappings with ``id`` and ``weight_percent``
            (``percentage`` is accepted as an alias).
        total: amount to split, in the unit the caller wants whole numbers of.

    Returns:
        One ``DistributedShare`` per input share, in input order. Every amount
        is 0 when total is invalid or not positive.
    """
    shares = [_coerce_share(s) for s in shares]
    if not shares:
        return []

    if not validate_amount(total) or safe_number(total) <= 0:
        return [DistributedShare(s.id, ZERO, s.name) for s in shares]
    total = safe_number(total)

    amounts = []
    remainders = []
    for share in shares:
        raw = total * safe_number(share.weight_percent) / HUNDRED
        floored = raw.to_integral_value(rounding=ROUND_FLOOR)
        amounts.append(floored)
        remainders.append(raw - floored)

    sum_floored = sum(amounts, ZERO)
    leftover = int((total - sum_floored).quantize(UNIT, rounding=ROUND_HALF_UP))

    logger.debug(
        f"Budget distribution: total={total} sum_floored={sum_floored} "
        f"leftover={leftover} shares={len(shares)}"
    )

    if leftover > 0:
        # sorted() is stable: equal remainders keep input order
        order = sorted(range(len(shares)), key=lambda i: remainders[i], reverse=True)
        for index in order[:leftover]:
            amounts[index] += UNIT

    distributed = sum(amounts, ZERO)
    if abs(distributed - total) > tolerance:
        logger.warning(
            f"Rounding produced incorrect sum: distributed={distributed} "
            f"total={total} diff={distributed - total}"
        )
        record(diagnostics, RoundingMismatch(total, distributed, tolerance))

    return [DistributedShare(s.id, amount, s.name) for s, amount in zip(shares, amounts)]


def validate_percentage_sum(percentages: Iterable,
                            low_utilization_percent: Decimal = LOW_UTILIZATION_PERCENT) -> PercentageCheck:
    """Check that percentages do not exceed 100 and flag low utilization."""
    total = sum((safe_number(p) for p in percentages), ZERO)

    if total > HUNDRED:
        return PercentageCheck(
            is_valid=False,
            total=total,
            message=f"Сумма процентов ({total:.1f}%) превышает 100%"
        )

    if ZERO < total < low_utilization_percent:
        return PercentageCheck(
            is_valid=True,
            total=total,
            message=f"Распределено только {total:.1f}% бюджета"
        )

    return PercentageCheck(is_valid=True, total=total)


def normalize_percentages(entries: Iterable[Union[PercentageEntry, Mapping]]) -> List[PercentageEntry]:
    """Rescale percentages so they add up to exactly 100.

    Values are floored to two decimals after scaling; the residual goes to the
    single largest entry.
    """
    entries = [_coerce_entry(e) for e in entries]
    total = sum((e.value for e in entries), ZERO)

    if total == ZERO or total == HUNDRED:
        return entries

    scale = HUNDRED / total
    normalized = [
        PercentageEntry(e.id, (e.value * scale).quantize(CENT, rounding=ROUND_FLOOR))
        for e in entries
    ]

    residual = HUNDRED - sum((e.value for e in normalized), ZERO)
    if residual != ZERO:
        largest = max(normalized, key=lambda e: e.value)
        largest.value += residual

    return normalized
