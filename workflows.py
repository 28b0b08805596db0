"""
Status transitions for premium upgrades, contact requests and moderated
submissions.

Premium and contact-request transitions are conditional ``update_one``
calls whose filter includes the expected current status, so a request that
loses a race observes the newer state instead of overwriting it. Moderation
statuses (success stories, contact messages) are free-form and simply set.
"""

import logging
import math
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

import config
from database import utcnow
from schemas import Payment, PaymentIn

logger = logging.getLogger(__name__)

NONE = "none"
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"


def parse_object_id(value: str, detail: str = "Invalid id") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=detail)


def ok(message: str, **extra) -> Dict[str, Any]:
    return {"success": True, "message": message, **extra}


# -----------------------------
# Premium upgrades
# -----------------------------

class PremiumTrack(BaseModel):
    """Field layout of one premium state machine (biodata or user account)."""
    model_config = ConfigDict(frozen=True)

    name: str
    status_field: str
    payment_field: str
    requested_field: str
    approved_field: str
    fee: float
    already_premium: str
    not_found: str
    on_approve: Dict[str, Any] = Field(default_factory=dict)

    def status_of(self, doc: Dict[str, Any]) -> str:
        return doc.get(self.status_field) or NONE


BIODATA_PREMIUM = PremiumTrack(
    name="biodata",
    status_field="premiumStatus",
    payment_field="premiumPayment",
    requested_field="premiumRequestedAt",
    approved_field="premiumReviewedAt",
    fee=config.BIODATA_PREMIUM_FEE,
    already_premium="This biodata is already premium",
    not_found="Biodata not found",
)

USER_PREMIUM = PremiumTrack(
    name="user",
    status_field="premiumUserStatus",
    payment_field="premiumUserPayment",
    requested_field="premiumUserRequestedAt",
    approved_field="premiumUserApprovedAt",
    fee=config.USER_PREMIUM_FEE,
    already_premium="Your account is already premium",
    not_found="User not found",
    on_approve={"userType": "premium"},
)


def check_fee(payment: PaymentIn, fee: float) -> str:
    currency = (payment.currency or config.DEFAULT_CURRENCY).upper()
    if not math.isclose(payment.amount, fee):
        raise HTTPException(
            status_code=400,
            detail=f"Premium upgrade requires a payment of {fee:g} {currency}",
        )
    return currency


def parse_payment(body: Optional[Dict[str, Any]]) -> PaymentIn:
    try:
        return PaymentIn.model_validate(body or {})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())


def request_premium(
    collection,
    doc: Dict[str, Any],
    body: Optional[Dict[str, Any]],
    track: PremiumTrack,
) -> Dict[str, Any]:
    """Move ``doc`` to pending. Pending and approved records answer success
    without looking at the payment body."""
    status = track.status_of(doc)
    if status == APPROVED:
        return ok(track.already_premium)
    if status == PENDING:
        return ok("Premium request already pending review")

    payment = parse_payment(body)
    currency = check_fee(payment, track.fee)
    now = utcnow()
    record = Payment(
        amount=payment.amount,
        currency=currency,
        cardLast4=payment.cardLast4,
        paymentMethod=payment.paymentMethod or "card",
        paymentProvider=payment.paymentProvider or "stripe",
        status=PENDING,
        requestedAt=now,
    ).model_dump()

    result = collection.update_one(
        {"_id": doc["_id"], track.status_field: {"$nin": [PENDING, APPROVED]}},
        {"$set": {
            track.status_field: PENDING,
            track.payment_field: record,
            track.requested_field: now,
            track.approved_field: None,
            "updatedAt": now,
        }},
    )
    if not result.modified_count:
        return ok("Premium request already pending review")

    logger.info("Premium %s request submitted for %s", track.name, doc.get("biodataId") or doc.get("uid"))
    return ok("Premium request submitted for review")


def approve_premium(collection, filter_q: Dict[str, Any], track: PremiumTrack) -> Dict[str, Any]:
    doc = collection.find_one(filter_q)
    if not doc:
        raise HTTPException(status_code=404, detail=track.not_found)

    status = track.status_of(doc)
    if status == APPROVED:
        return ok("Premium request already approved")
    if status != PENDING:
        raise HTTPException(status_code=400, detail="No pending premium request")

    now = utcnow()
    update = {
        track.status_field: APPROVED,
        track.approved_field: now,
        "updatedAt": now,
        **track.on_approve,
    }
    if isinstance(doc.get(track.payment_field), dict):
        update[f"{track.payment_field}.status"] = APPROVED
        update[f"{track.payment_field}.approvedAt"] = now

    result = collection.update_one({"_id": doc["_id"], track.status_field: PENDING}, {"$set": update})
    if not result.modified_count:
        return ok("Premium request already approved")

    logger.info("Premium %s request approved for %s", track.name, doc.get("biodataId") or doc.get("uid"))
    return ok("Premium request approved")


# -----------------------------
# Contact requests
# -----------------------------

def _get_contact_request(db, request_id: str) -> Dict[str, Any]:
    doc = db.contact_requests.find_one({"_id": parse_object_id(request_id, "Invalid request id")})
    if not doc:
        raise HTTPException(status_code=404, detail="Contact request not found")
    return doc


def approve_contact_request(db, request_id: str) -> Dict[str, Any]:
    doc = _get_contact_request(db, request_id)
    if doc.get("status") == APPROVED:
        return ok("Contact request already approved")
    if doc.get("status") == REJECTED:
        raise HTTPException(status_code=400, detail="Rejected contact requests cannot be approved")

    now = utcnow()
    result = db.contact_requests.update_one(
        {"_id": doc["_id"], "status": PENDING},
        {"$set": {"status": APPROVED, "paymentStatus": APPROVED, "approvedAt": now, "updatedAt": now}},
    )
    if not result.modified_count:
        return ok("Contact request already approved")

    logger.info("Contact request %s approved for %s", request_id, doc.get("requesterUid"))
    return ok("Contact request approved")


def reject_contact_request(db, request_id: str) -> Dict[str, Any]:
    doc = _get_contact_request(db, request_id)
    if doc.get("status") == REJECTED:
        return ok("Contact request already rejected")
    if doc.get("status") == APPROVED:
        raise HTTPException(status_code=400, detail="Approved contact requests cannot be rejected")

    now = utcnow()
    result = db.contact_requests.update_one(
        {"_id": doc["_id"], "status": PENDING},
        {"$set": {"status": REJECTED, "rejectedAt": now, "updatedAt": now}},
    )
    if not result.modified_count:
        current = db.contact_requests.find_one({"_id": doc["_id"]}) or {}
        if current.get("status") == APPROVED:
            raise HTTPException(status_code=400, detail="Approved contact requests cannot be rejected")
        return ok("Contact request already rejected")

    logger.info("Contact request %s rejected", request_id)
    return ok("Contact request rejected")


# -----------------------------
# Moderation
# -----------------------------

# Timestamp stamped when a document enters the given status
SUCCESS_STORY_STAMPS = {"approved": "approvedAt", "rejected": "reviewedAt", "under_review": "reviewedAt"}
CONTACT_MESSAGE_STAMPS = {"resolved": "resolvedAt"}


def update_moderation_status(
    collection,
    item_id: str,
    status: str,
    admin_note: Optional[str],
    stamps: Dict[str, str],
    not_found: str,
) -> Dict[str, Any]:
    oid = parse_object_id(item_id)
    now = utcnow()
    update: Dict[str, Any] = {"status": status, "updatedAt": now}
    if status in stamps:
        update[stamps[status]] = now
    if status == APPROVED:
        update["reviewedAt"] = now
    if admin_note is not None:
        update["adminNote"] = admin_note.strip()

    result = collection.update_one({"_id": oid}, {"$set": update})
    if not result.matched_count:
        raise HTTPException(status_code=404, detail=not_found)

    logger.info("%s %s moved to %s", collection.name, item_id, status)
    return ok("Status updated", status=status)
