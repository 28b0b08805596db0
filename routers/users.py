import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from auth import TokenUser, ensure_owner_or_admin, get_current_user
from database import USERS_COLLECTION, Database, get_db, utcnow
from schemas import ProfileUpdate, RegisterRequest, User
from serializers import public_user
from workflows import USER_PREMIUM, ok, request_premium

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _profile_fields(payload: ProfileUpdate, fallback_email: str) -> dict:
    display_name = _clean(payload.displayName)
    if not display_name:
        raise HTTPException(status_code=400, detail="Display name is required")
    now = utcnow()
    return {
        "email": _clean(payload.email or fallback_email).lower(),
        "displayName": display_name,
        "photoURL": _clean(payload.photoURL),
        "phoneNumber": _clean(payload.phoneNumber),
        "address": _clean(payload.address),
        "bio": _clean(payload.bio),
        "updatedAt": now,
        "profileUpdatedAt": now,
    }


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    email = payload.email.lower()
    existing = db.users.find_one({"$or": [{"email": email}, {"uid": payload.uid}]})
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    # Roles are granted by an admin, never self-assigned at sign-up
    user = User(
        uid=payload.uid,
        email=email,
        displayName=_clean(payload.displayName),
        photoURL=_clean(payload.photoURL),
    )
    db.create_document(USERS_COLLECTION, user)
    logger.info("Registered user %s", payload.uid)
    return {
        "success": True,
        "user": {"email": email, "uid": user.uid, "userType": user.userType, "role": user.role},
    }


@router.get("/users/{uid}")
def get_user(uid: str, db: Database = Depends(get_db)):
    user = db.users.find_one({"uid": uid})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(user)


@router.put("/users/profile")
def update_profile(
    payload: ProfileUpdate,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    ensure_owner_or_admin(user, payload.uid, "You can only update your own profile")

    existing = db.users.find_one({"uid": payload.uid})
    if not existing:
        raise HTTPException(status_code=404, detail="User not found")

    fields = _profile_fields(payload, existing.get("email") or "")
    unchanged = all(existing.get(k) == v for k, v in fields.items() if not k.endswith("At"))
    if unchanged:
        return ok("Profile already up to date")

    db.users.update_one({"uid": payload.uid}, {"$set": fields})
    return ok("Profile updated successfully")


@router.post("/users/profile")
def save_profile(
    payload: ProfileUpdate,
    response: Response,
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    ensure_owner_or_admin(user, payload.uid, "You can only update your own profile")

    existing = db.users.find_one({"uid": payload.uid})
    fields = _profile_fields(payload, (existing or {}).get("email") or user.email)
    db.users.update_one(
        {"uid": payload.uid},
        {
            "$set": fields,
            "$setOnInsert": {
                "role": "user",
                "userType": "basic",
                "premiumUserStatus": "none",
                "favorites": [],
                "createdAt": fields["updatedAt"],
            },
        },
        upsert=True,
    )
    if existing:
        return ok("Profile saved successfully")
    response.status_code = 201
    return ok("Profile created successfully")


@router.post("/users/premium-request")
def request_user_premium(
    payment: Optional[Dict[str, Any]] = Body(None),
    user: TokenUser = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    doc = db.users.find_one({"uid": user.uid}) if user.uid else None
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    if doc.get("userType") == "premium":
        return ok(USER_PREMIUM.already_premium)
    return request_premium(db.users, doc, payment, USER_PREMIUM)
