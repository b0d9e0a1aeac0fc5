"""
Calamity template expansion.

Turns a calamity's standard item quantities into distribution lines that
fit current stock: each quantity is clamped to what is on hand, and items
that are out of stock (or gone) are left out without complaint.
"""

from collections.abc import Iterable, Mapping

from relief_kernel.domain.dtos import CalamityItemSpec, DistributionLine


def clamp_to_stock(standard_quantity: int, on_hand: int) -> int:
    return max(0, min(standard_quantity, on_hand))


def expand_template(
    template: Iterable[CalamityItemSpec],
    stock: Mapping[int, int],
) -> list[DistributionLine]:
    """
    Expand template lines against a stock snapshot.

    Args:
        template: Template lines in display order.
        stock: On-hand quantity per item id.  Unknown ids count as 0.

    Returns:
        Lines in template order, each with quantity
        ``min(standard_quantity, stock)``; zero-quantity lines dropped.
    """
    lines = []
    for spec in template:
        quantity = clamp_to_stock(spec.standard_quantity, stock.get(spec.item_id, 0))
        if quantity > 0:
            lines.append(DistributionLine(spec.item_id, quantity))
    return lines
