"""snake_case <-> camelCase key translation for request/response shaping.

Known fields go through explicit tables. Anything else falls back to the
character rule, except keys that already mix both conventions
(``store_Purchase``), which are returned untouched instead of being guessed at.
"""
import re
from typing import Any, Dict, Optional

_SNAKE_SEGMENT = re.compile(r"_([a-z])")
_CAPITAL = re.compile(r"[A-Z]")

SNAKE_TO_CAMEL: Dict[str, str] = {
    # agreements
    "product_id": "productId",
    "consignor_id": "consignorId",
    "commission_rate": "commissionRate",
    "unsold_item_policy": "unsoldItemPolicy",
    "return_fallback_days": "returnFallbackDays",
    "charity_choice": "charityChoice",
    "discount_schedule": "discountSchedule",
    "discount_schedule_enabled": "discountScheduleEnabled",
    "discount_policy": "discountPolicy",
    "store_purchase_option": "storePurchaseOption",
    "store_purchase_percentage": "storePurchasePercentage",
    "agreement_acknowledged": "agreementAcknowledged",
    "acknowledgment_date": "acknowledgmentDate",
    "progressive_discounts": "progressiveDiscounts",
    "charity_donations": "charityDonations",
    "days_after_listing": "daysAfterListing",
    "discount_percent": "discountPercent",
    "agreement_id": "agreementId",
    # reports
    "consignor_name": "consignorName",
    "total_sales": "totalSales",
    "commission_amount": "commissionAmount",
    # shared
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

CAMEL_TO_SNAKE: Dict[str, str] = {camel: snake for snake, camel in SNAKE_TO_CAMEL.items()}


def _is_mixed(key: str) -> bool:
    return "_" in key and _CAPITAL.search(key) is not None


def camel_key(key: str, table: Optional[Dict[str, str]] = None) -> str:
    table = SNAKE_TO_CAMEL if table is None else table
    if key in table:
        return table[key]
    if _is_mixed(key):
        return key
    return _SNAKE_SEGMENT.sub(lambda m: m.group(1).upper(), key)


def snake_key(key: str, table: Optional[Dict[str, str]] = None) -> str:
    table = CAMEL_TO_SNAKE if table is None else table
    if key in table:
        return table[key]
    if _is_mixed(key):
        return key
    return _CAPITAL.sub(lambda m: "_" + m.group(0).lower(), key)


def _translate(data: Any, convert) -> Any:
    if data is None:
        return data
    if isinstance(data, list):
        return [_translate(item, convert) for item in data]
    if isinstance(data, dict):
        return {
            (convert(key) if isinstance(key, str) else key): _translate(value, convert)
            for key, value in data.items()
        }
    return data


def to_camel_case(data: Any) -> Any:
    """Recursively rewrite dict keys from snake_case to camelCase."""
    return _translate(data, camel_key)


def to_snake_case(data: Any) -> Any:
    """Recursively rewrite dict keys from camelCase to snake_case."""
    return _translate(data, snake_key)
