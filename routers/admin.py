import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from auth import TokenUser, require_admin
from database import Database, get_db, utcnow
from pagination import contains_ci, paginate
from reports import overview
from routers.contact_requests import attach_contact_details
from schemas import (
    ContactMessageStatus,
    ContactMessageStatusUpdate,
    ContactRequestStatus,
    Role,
    RoleUpdate,
    SuccessStoryStatus,
    SuccessStoryStatusUpdate,
    UserType,
)
from serializers import public_user, sanitize_biodata, to_doc
from workflows import (
    BIODATA_PREMIUM,
    CONTACT_MESSAGE_STAMPS,
    SUCCESS_STORY_STAMPS,
    USER_PREMIUM,
    approve_contact_request,
    approve_premium,
    ok,
    reject_contact_request,
    update_moderation_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

NEWEST_FIRST = [("createdAt", -1)]


@router.get("/overview")
def admin_overview(db: Database = Depends(get_db)):
    return overview(db)


# -----------------------------
# Users
# -----------------------------

@router.get("/users")
def list_users(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    role: Optional[Role] = None,
    userType: Optional[UserType] = None,
    db: Database = Depends(get_db),
):
    filter_q = {}
    if search:
        filter_q["$or"] = [{"displayName": contains_ci(search)}, {"email": contains_ci(search)}]
    if role:
        filter_q["role"] = role
    if userType:
        filter_q["userType"] = userType
    return paginate(db.users, filter_q, page, limit, sort=NEWEST_FIRST, transform=public_user, default_limit=20)


@router.patch("/users/{uid}/role")
def update_user_role(
    uid: str,
    payload: RoleUpdate,
    admin: TokenUser = Depends(require_admin),
    db: Database = Depends(get_db),
):
    if uid == admin.uid and payload.role != "admin":
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")
    result = db.users.update_one({"uid": uid}, {"$set": {"role": payload.role, "updatedAt": utcnow()}})
    if not result.matched_count:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin %s set role of %s to %s", admin.uid, uid, payload.role)
    return ok("Role updated", role=payload.role)


# -----------------------------
# Premium requests
# -----------------------------

@router.get("/premium-requests")
def list_biodata_premium_requests(page: int = 1, limit: int = 20, db: Database = Depends(get_db)):
    return paginate(
        db.biodata,
        {"premiumStatus": "pending"},
        page,
        limit,
        sort=[("premiumRequestedAt", 1)],
        transform=sanitize_biodata,
        default_limit=20,
    )


@router.post("/premium-requests/{biodata_id}/approve")
def approve_biodata_premium(biodata_id: str, db: Database = Depends(get_db)):
    return approve_premium(db.biodata, {"biodataId": biodata_id}, BIODATA_PREMIUM)


@router.get("/user-premium-requests")
def list_user_premium_requests(page: int = 1, limit: int = 20, db: Database = Depends(get_db)):
    return paginate(
        db.users,
        {"premiumUserStatus": "pending"},
        page,
        limit,
        sort=[("premiumUserRequestedAt", 1)],
        transform=public_user,
        default_limit=20,
    )


@router.post("/user-premium-requests/{uid}/approve")
def approve_user_premium(uid: str, db: Database = Depends(get_db)):
    return approve_premium(db.users, {"uid": uid}, USER_PREMIUM)


# -----------------------------
# Contact requests
# -----------------------------

@router.get("/contact-requests")
def list_all_contact_requests(
    page: int = 1,
    limit: int = 20,
    status: Optional[ContactRequestStatus] = None,
    db: Database = Depends(get_db),
):
    filter_q = {"status": status} if status else {}
    result = paginate(db.contact_requests, filter_q, page, limit, sort=NEWEST_FIRST, default_limit=20)
    result["data"] = attach_contact_details(db, result["data"])
    return result


@router.post("/contact-requests/{request_id}/approve")
def approve_request(request_id: str, db: Database = Depends(get_db)):
    return approve_contact_request(db, request_id)


@router.post("/contact-requests/{request_id}/reject")
def reject_request(request_id: str, db: Database = Depends(get_db)):
    return reject_contact_request(db, request_id)


# -----------------------------
# Moderation
# -----------------------------

@router.get("/success-stories")
def list_success_stories(
    page: int = 1,
    limit: int = 20,
    status: Optional[SuccessStoryStatus] = None,
    db: Database = Depends(get_db),
):
    filter_q = {"status": status} if status else {}
    return paginate(db.success_stories, filter_q, page, limit, sort=NEWEST_FIRST, transform=to_doc, default_limit=20)


@router.patch("/success-stories/{story_id}/status")
def update_success_story_status(story_id: str, payload: SuccessStoryStatusUpdate, db: Database = Depends(get_db)):
    return update_moderation_status(
        db.success_stories,
        story_id,
        payload.status,
        payload.adminNote,
        SUCCESS_STORY_STAMPS,
        "Success story not found",
    )


@router.get("/contact-messages")
def list_contact_messages(
    page: int = 1,
    limit: int = 20,
    status: Optional[ContactMessageStatus] = None,
    db: Database = Depends(get_db),
):
    filter_q = {"status": status} if status else {}
    return paginate(db.contact_messages, filter_q, page, limit, sort=NEWEST_FIRST, transform=to_doc, default_limit=20)


@router.patch("/contact-messages/{message_id}/status")
def update_contact_message_status(message_id: str, payload: ContactMessageStatusUpdate, db: Database = Depends(get_db)):
    return update_moderation_status(
        db.contact_messages,
        message_id,
        payload.status,
        payload.adminNote,
        CONTACT_MESSAGE_STAMPS,
        "Contact message not found",
    )
