import logging

from fastapi import APIRouter, Depends, HTTPException

from auth import TokenUser, ensure_owner_or_admin, get_current_user
from database import Database, get_db
from schemas import FavoriteIn
from workflows import ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"])

FAVORITE_PROJECTION = {"_id": 0, "name": 1, "biodataId": 1, "permanentAddress": 1, "occupation": 1}
OWN_FAVORITES_ONLY = "You can only modify your own favorites"


@router.post("")
def add_favorite(payload: FavoriteIn, user: TokenUser = Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_owner_or_admin(user, payload.uid, OWN_FAVORITES_ONLY)

    if not db.users.find_one({"uid": payload.uid}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="User not found")
    if not db.biodata.find_one({"biodataId": payload.biodataId}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Biodata not found")

    result = db.users.update_one({"uid": payload.uid}, {"$addToSet": {"favorites": payload.biodataId}})
    if not result.modified_count:
        return ok("Biodata already present in favorites")
    return ok("Biodata added to favorites")


@router.get("/{uid}")
def list_favorites(uid: str, user: TokenUser = Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_owner_or_admin(user, uid)

    doc = db.users.find_one({"uid": uid}, {"favorites": 1})
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")

    favorites = [str(f) for f in doc.get("favorites") or []]
    if not favorites:
        return []
    return list(db.biodata.find({"biodataId": {"$in": favorites}}, FAVORITE_PROJECTION))


@router.delete("")
def remove_favorite(payload: FavoriteIn, user: TokenUser = Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_owner_or_admin(user, payload.uid, OWN_FAVORITES_ONLY)

    result = db.users.update_one({"uid": payload.uid}, {"$pull": {"favorites": payload.biodataId}})
    if not result.matched_count:
        raise HTTPException(status_code=404, detail="User not found")
    if not result.modified_count:
        return ok("Biodata was not in favorites")
    return ok("Biodata removed from favorites")
