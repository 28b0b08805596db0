import logging
import re
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pymongo.errors import DuplicateKeyError

from auth import TokenUser, ensure_owner_or_admin, get_current_user
from database import Database, get_db, utcnow
from pagination import contains_ci, exact_ci, paginate
from schemas import BiodataIn
from serializers import public_biodata, sanitize_biodata
from workflows import BIODATA_PREMIUM, request_premium

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/biodata", tags=["biodata"])

BIODATA_PREFIX = "PRNT-"
BIODATA_SEQUENCE = "biodataId"
ID_ASSIGN_ATTEMPTS = 3

# Legacy documents have no isPublished field and stay visible
PUBLISHED = {"isPublished": {"$ne": False}}


def extract_numeric_id(value: Any) -> int:
    digits = re.sub(r"[^0-9]", "", str(value or ""))
    return int(digits) if digits else 0


def next_numeric_id(db: Database) -> int:
    return db.next_sequence(BIODATA_SEQUENCE, seed=db.biodata.count_documents({}))


def build_filter(
    biodata_type: Optional[str],
    division: Optional[str],
    min_age: Optional[float],
    max_age: Optional[float],
    search_id: Optional[str],
) -> Dict[str, Any]:
    filter_q: Dict[str, Any] = dict(PUBLISHED)
    if biodata_type and biodata_type.lower() != "all":
        filter_q["biodataType"] = exact_ci(biodata_type)
    if division and division.lower() != "all":
        filter_q["permanentDivision"] = exact_ci(division)
    age_q = {}
    if min_age is not None:
        age_q["$gte"] = min_age
    if max_age is not None:
        age_q["$lte"] = max_age
    if age_q:
        filter_q["age"] = age_q
    if search_id:
        filter_q["biodataId"] = contains_ci(search_id)
    return filter_q


@router.get("")
def list_biodata(
    page: int = 1,
    limit: int = 15,
    biodata_type: Optional[str] = Query(None, alias="type"),
    division: Optional[str] = None,
    minAge: Optional[float] = None,
    maxAge: Optional[float] = None,
    searchId: Optional[str] = None,
    db: Database = Depends(get_db),
):
    filter_q = build_filter(biodata_type, division, minAge, maxAge, searchId)
    return paginate(
        db.biodata,
        filter_q,
        page,
        limit,
        sort=[("createdAt", -1), ("numericBiodataId", -1)],
        transform=public_biodata,
    )


@router.get("/premium")
def list_premium_biodata(
    limit: int = Query(6, ge=1, le=100),
    sort: Literal["asc", "desc"] = "asc",
    db: Database = Depends(get_db),
):
    direction = 1 if sort == "asc" else -1
    cursor = (
        db.biodata.find({"premiumStatus": "approved", **PUBLISHED})
        .sort([("age", direction), ("numericBiodataId", 1)])
        .limit(limit)
    )
    return [public_biodata(d) for d in cursor]


@router.get("/user/{uid}")
def get_biodata_for_user(uid: str, user: TokenUser = Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_owner_or_admin(user, uid)
    doc = db.biodata.find_one({"uid": uid})
    if not doc:
        raise HTTPException(status_code=404, detail="Biodata not found")
    return sanitize_biodata(doc)


@router.get("/{biodata_id}")
def get_biodata(biodata_id: str, db: Database = Depends(get_db)):
    doc = db.biodata.find_one({"biodataId": biodata_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Biodata not found")
    return public_biodata(doc)


def _base_document(payload: BiodataIn, uid: str, email: str) -> Dict[str, Any]:
    data = payload.model_dump()
    return {
        **data,
        "profileImage": data["profileImage"] or "",
        "fatherName": data["fatherName"] or "",
        "motherName": data["motherName"] or "",
        "expectedPartnerAge": data["expectedPartnerAge"] or "",
        "about": data["about"] or "",
        "permanentAddress": data["permanentDivision"],
        "contactEmail": email,
        "uid": uid,
        "isPublished": True,
        "updatedAt": utcnow(),
    }


def _update_existing(db: Database, existing: Dict[str, Any], base: Dict[str, Any]) -> Dict[str, Any]:
    numeric_id = existing.get("numericBiodataId") or extract_numeric_id(existing.get("biodataId"))
    if not numeric_id:
        numeric_id = next_numeric_id(db)
    biodata_id = existing.get("biodataId") or ""
    if not biodata_id.startswith(BIODATA_PREFIX):
        biodata_id = f"{BIODATA_PREFIX}{numeric_id}"

    update = {
        **base,
        "biodataId": biodata_id,
        "numericBiodataId": numeric_id,
        "premiumStatus": existing.get("premiumStatus") or "none",
        "premiumRequestedAt": existing.get("premiumRequestedAt"),
        "premiumReviewedAt": existing.get("premiumReviewedAt"),
        "createdAt": existing.get("createdAt") or utcnow(),
    }
    db.biodata.update_one({"_id": existing["_id"]}, {"$set": update})
    return db.biodata.find_one({"_id": existing["_id"]})


def _insert_new(db: Database, base: Dict[str, Any]) -> Dict[str, Any]:
    # The counter is atomic; the unique index catches ids taken by older writers
    for _ in range(ID_ASSIGN_ATTEMPTS):
        numeric_id = next_numeric_id(db)
        doc = {
            **base,
            "biodataId": f"{BIODATA_PREFIX}{numeric_id}",
            "numericBiodataId": numeric_id,
            "premiumStatus": "none",
            "premiumRequestedAt": None,
            "premiumReviewedAt": None,
            "createdAt": utcnow(),
        }
        try:
            db.biodata.insert_one(doc)
        except DuplicateKeyError:
            logger.warning("Biodata id %s already taken, retrying", doc["biodataId"])
            continue
        return doc
    raise HTTPException(status_code=500, detail="Could not assign a biodata id")


@router.post("")
def save_biodata(
    payload: BiodataIn,
    response: Response,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    email = user.email.lower()
    if not user.uid or not email:
        raise HTTPException(status_code=403, detail="User context missing")

    base = _base_document(payload, user.uid, email)
    existing = db.biodata.find_one({"uid": user.uid})
    if existing:
        doc = _update_existing(db, existing, base)
        return {"success": True, "message": "Biodata updated successfully", "biodata": sanitize_biodata(doc)}

    doc = _insert_new(db, base)
    logger.info("Biodata %s created for %s", doc["biodataId"], user.uid)
    response.status_code = 201
    return {"success": True, "message": "Biodata created successfully", "biodata": sanitize_biodata(doc)}


@router.post("/{biodata_id}/premium-request")
def request_biodata_premium(
    biodata_id: str,
    payment: Optional[Dict[str, Any]] = Body(None),
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    doc = db.biodata.find_one({"biodataId": biodata_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Biodata not found")
    ensure_owner_or_admin(user, doc.get("uid"))
    return request_premium(db.biodata, doc, payment, BIODATA_PREMIUM)
