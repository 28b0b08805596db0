import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from jose import JWTError

import config
from auth import (
    REFRESH_COOKIE,
    clear_auth_cookies,
    create_access_token,
    create_refresh_token,
    decode_token,
    set_auth_cookies,
    token_claims,
)
from database import Database, get_db
from schemas import TokenRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/jwt")
def issue_tokens(payload: TokenRequest, response: Response, db: Database = Depends(get_db)):
    email = payload.email.lower()
    user = db.users.find_one({"email": email})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    claims = token_claims(user, email)
    set_auth_cookies(response, create_access_token(claims), create_refresh_token(claims))
    logger.info("Issued tokens for %s", claims["uid"])
    return {"success": True}


@router.post("/refresh")
def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: Database = Depends(get_db),
):
    if not refresh_token:
        raise HTTPException(status_code=401, detail="No refresh token")
    try:
        decoded = decode_token(refresh_token, config.REFRESH_TOKEN_SECRET)
    except JWTError:
        raise HTTPException(status_code=403, detail="Invalid refresh token")

    # Pick up role and premium changes made since the refresh token was issued
    user = db.users.find_one({"uid": decoded.uid}) if decoded.uid else None
    claims = token_claims(user, decoded.email) if user else decoded.model_dump()
    set_auth_cookies(response, create_access_token(claims))
    return {"success": True}


@router.post("/logout")
def logout(response: Response):
    clear_auth_cookies(response)
    return {"success": True}
