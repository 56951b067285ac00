"""
Normalisation of product rows before they are written.

Shared by the REST backend (create and bulk upsert) and by the hosted-backend
gateway, so both backends apply the same per-field defaults.
"""
from typing import Any, Dict, Iterable, List, Optional

PLACEHOLDER_IMAGE = "/placeholder.svg"

# Fields that fall back to a default when missing or empty
PRODUCT_DEFAULTS: Dict[str, Any] = {
    "original_price": None,
    "description": "",
    "image_url": PLACEHOLDER_IMAGE,
    "category_id": None,
}


PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


def normalize_product_row(row: Dict[str, Any], require_code: bool = False) -> Dict[str, Any]:
    """Return a copy of ``row`` with defaults applied.

    ``active`` keeps an explicit ``False`` and only defaults when absent or None.
    Raises ``ValueError`` when ``require_code`` is set and the row has no code.
    """
    if require_code and not str(row.get("code") or "").strip():
        raise ValueError(f"Product row without code: {row.get('name')!r}")

    normalized = {k: v for k, v in row.items() if k not in PROTECTED_FIELDS}
    for field, default in PRODUCT_DEFAULTS.items():
        if not normalized.get(field):
            normalized[field] = default
    if normalized.get("active") is None:
        normalized["active"] = True
    return normalized


def normalize_product_rows(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalise bulk-import rows; every row must carry a code."""
    return [normalize_product_row(row, require_code=True) for row in rows]


def resolve_image_url(incoming: Optional[str], existing: Optional[str]) -> Optional[str]:
    """A placeholder never overwrites a real image of an existing product."""
    if not incoming or incoming == PLACEHOLDER_IMAGE:
        return existing or PLACEHOLDER_IMAGE
    return incoming
