"""
Stock arithmetic for distribution validation.

Pure functions over plain mappings; no session, no ORM.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from relief_kernel.domain.dtos import DistributionLine


@dataclass(frozen=True)
class Shortfall:
    item_id: int
    available: int
    requested: int


def combine_lines(lines: Iterable[DistributionLine]) -> dict[int, int]:
    """
    Total requested quantity per item, in first-seen order.

    Two lines naming the same item are validated against stock as one.
    """
    required: dict[int, int] = {}
    for line in lines:
        required[line.item_id] = required.get(line.item_id, 0) + line.quantity
    return required


def scale_requirements(lines: Iterable[DistributionLine], recipients: int) -> dict[int, int]:
    """Stock needed to give the same lines to ``recipients`` beneficiaries."""
    return {item_id: qty * recipients for item_id, qty in combine_lines(lines).items()}


def find_shortfalls(required: Mapping[int, int], available: Mapping[int, int]) -> list[Shortfall]:
    """
    Items whose requirement exceeds what is on hand.

    Items missing from ``available`` count as zero stock.
    """
    shortfalls = []
    for item_id, requested in required.items():
        on_hand = available.get(item_id, 0)
        if on_hand < requested:
            shortfalls.append(Shortfall(item_id, on_hand, requested))
    return shortfalls
