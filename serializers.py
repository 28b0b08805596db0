import datetime
from typing import Any, Dict, Optional

from bson import ObjectId

# Fields only the owner, an admin, or an approved contact request may see
PRIVATE_BIODATA_FIELDS = ("contactEmail", "mobileNumber", "premiumPayment")


def _convert(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(v) for v in value]
    return value


def to_doc(d: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a Mongo document into a JSON-safe dict with ``id`` instead of ``_id``."""
    if not d:
        return d
    d = dict(d)
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return _convert(d)


def sanitize_biodata(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    doc = dict(doc or {})
    doc.pop("_id", None)
    doc.pop("numericBiodataId", None)
    return _convert(doc)


def public_biodata(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    doc = sanitize_biodata(doc)
    for field in PRIVATE_BIODATA_FIELDS:
        doc.pop(field, None)
    return doc


def public_user(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    doc = dict(doc or {})
    doc.pop("_id", None)
    payment = doc.get("premiumUserPayment")
    if isinstance(payment, dict):
        doc["premiumUserPayment"] = {k: v for k, v in payment.items() if k != "cardLast4"}
    return _convert(doc)
