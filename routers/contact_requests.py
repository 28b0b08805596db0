import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

import config
from auth import TokenUser, ensure_owner_or_admin, get_current_user
from database import CONTACT_REQUESTS_COLLECTION, Database, get_db
from schemas import ContactRequest, ContactRequestIn, ContactRequestStatus
from serializers import to_doc
from workflows import APPROVED, PENDING, ok, parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact-requests", tags=["contact-requests"])

CONTACT_PROJECTION = {"biodataId": 1, "name": 1, "contactEmail": 1, "mobileNumber": 1}


def with_contact_details(item: dict, biodata: Optional[dict]) -> dict:
    """Attach the biodata name, and the private contact fields once approved."""
    approved = item.get("status") == APPROVED
    biodata = biodata or {}
    out = to_doc(item)
    out["name"] = item.get("biodataName") or biodata.get("name")
    out["contactEmail"] = biodata.get("contactEmail") if approved else None
    out["mobileNumber"] = biodata.get("mobileNumber") if approved else None
    return out


def attach_contact_details(db: Database, requests: list) -> list:
    biodata_ids = sorted({str(r.get("biodataId")) for r in requests})
    biodata_map = {
        str(d["biodataId"]): d
        for d in db.biodata.find({"biodataId": {"$in": biodata_ids}}, CONTACT_PROJECTION)
    }
    return [with_contact_details(r, biodata_map.get(str(r.get("biodataId")))) for r in requests]


@router.post("", status_code=201)
def create_contact_request(
    payload: ContactRequestIn,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    requester_email = user.email.lower()
    if not user.uid or not requester_email:
        raise HTTPException(status_code=403, detail="User context missing for contact request")

    biodata = db.biodata.find_one({"biodataId": payload.biodataId})
    if not biodata:
        raise HTTPException(status_code=404, detail="Referenced biodata not found")
    if biodata.get("uid") == user.uid:
        raise HTTPException(status_code=400, detail="You cannot request your own contact information")

    existing = db.contact_requests.find_one({
        "biodataId": payload.biodataId,
        "requesterUid": user.uid,
        "status": {"$in": [PENDING, APPROVED]},
    })
    if existing:
        raise HTTPException(
            status_code=409,
            detail="A pending or approved request already exists for this biodata",
        )

    request = ContactRequest(
        biodataId=payload.biodataId,
        biodataName=biodata.get("name"),
        requesterUid=user.uid,
        requesterEmail=requester_email,
        amount=payload.amount,
        currency=(payload.currency or config.DEFAULT_CURRENCY).upper(),
        paymentProvider=payload.paymentProvider or "stripe",
        paymentMethod=payload.paymentMethod or "card",
        cardLast4=payload.cardLast4,
    )
    request_id = db.create_document(CONTACT_REQUESTS_COLLECTION, request)
    logger.info("Contact request %s created by %s for %s", request_id, user.uid, payload.biodataId)
    return ok("Contact request submitted successfully", requestId=request_id)


@router.get("")
def list_contact_requests(
    requesterUid: Optional[str] = None,
    status: Optional[ContactRequestStatus] = None,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    target_uid = user.uid
    if requesterUid and requesterUid != user.uid:
        if not user.is_admin:
            raise HTTPException(status_code=403, detail="You can only view your own contact requests")
        target_uid = requesterUid

    filter_q = {"requesterUid": target_uid}
    if status:
        filter_q["status"] = status

    requests = list(db.contact_requests.find(filter_q).sort("createdAt", -1))
    return attach_contact_details(db, requests)


@router.delete("/{request_id}")
def delete_contact_request(
    request_id: str,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(request_id, "Invalid request id")
    doc = db.contact_requests.find_one({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail="Contact request not found")

    ensure_owner_or_admin(user, doc.get("requesterUid"))
    db.contact_requests.delete_one({"_id": oid})
    logger.info("Contact request %s removed by %s", request_id, user.uid)
    return ok("Contact request removed")
