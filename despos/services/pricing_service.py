"""Pricing Service - picks the unit price for a product from its price levels."""
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from despos.exceptions import NoPriceLevelError


def select_price_level(price_levels: Iterable[Dict[str, Any]], product_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Select the applicable price level entry.
    
    Entries are sorted by ``price_level.level_name`` (lexicographic) and the
    first one wins, i.e. the base "Level 1" tier.
    
    Args:
        price_levels: Entries shaped like ``{'price_level': {'level_name', 'price', ...}, ...}``
        product_name: Used in the error message only
    
    Raises:
        NoPriceLevelError: If the product has no price level
    """
    entries = [entry for entry in (price_levels or []) if entry.get('price_level')]
    if not entries:
        raise NoPriceLevelError(product_name)
    
    return sorted(entries, key=lambda entry: str(entry['price_level']['level_name']))[0]


def resolve_price(price_levels: Iterable[Dict[str, Any]], product_name: Optional[str] = None) -> Decimal:
    """Unit price of the lowest-named price level (also used as unit cost)."""
    entry = select_price_level(price_levels, product_name)
    return Decimal(str(entry['price_level']['price']))
