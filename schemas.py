"""
Database Schemas for Porinity

Each Pydantic model below either describes a MongoDB collection document
or a request body accepted by the API. Collection names are fixed in
``database.py``.
"""

import math
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, StringConstraints, field_validator

import config

AGE_ERROR = "Age must be a number and at least 18"
AMOUNT_ERROR = "amount must be a positive number"
CARD_LAST4_ERROR = "cardLast4 must contain the last four digits of the card"

Role = Literal["user", "admin"]
UserType = Literal["basic", "premium"]
PremiumStatus = Literal["none", "pending", "approved"]
ContactRequestStatus = Literal["pending", "approved", "rejected"]
SuccessStoryStatus = Literal["pending", "under_review", "approved", "rejected"]
ContactMessageStatus = Literal["new", "in_progress", "resolved"]


def _stringify(value: Any) -> Any:
    # Clients send numbers for height, weight and phone numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# Constraints sit on the inner str schema; the outer validator runs before them
RequiredStr = Annotated[
    Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)],
    BeforeValidator(_stringify),
]
OptionalStr = Annotated[Optional[str], BeforeValidator(_stringify)]
LongText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=5000)]


def normalize_card_last4(value: Any) -> str:
    digits = "".join(ch for ch in str(value or "") if ch.isdigit())[-4:]
    if len(digits) != 4:
        raise ValueError(CARD_LAST4_ERROR)
    return digits


# -----------------------------
# Collection documents
# -----------------------------

class Payment(BaseModel):
    amount: float
    currency: str = config.DEFAULT_CURRENCY
    cardLast4: str
    paymentMethod: str = "card"
    paymentProvider: str = "stripe"
    status: Literal["pending", "approved"] = "pending"
    requestedAt: Optional[datetime] = None
    approvedAt: Optional[datetime] = None


class User(BaseModel):
    """
    Users collection schema
    Collection: "Users"
    """
    uid: str = Field(..., description="External identity-provider subject")
    email: EmailStr
    displayName: str = ""
    photoURL: str = ""
    phoneNumber: str = ""
    address: str = ""
    bio: str = ""
    role: Role = "user"
    userType: UserType = "basic"
    premiumUserStatus: PremiumStatus = "none"
    premiumUserPayment: Optional[Payment] = None
    favorites: List[str] = Field(default_factory=list)


class ContactRequest(BaseModel):
    """
    Paid unlock of a biodata owner's contact details
    Collection: "ContactRequests"
    """
    biodataId: str
    biodataName: Optional[str] = None
    requesterUid: str
    requesterEmail: str
    amount: float = Field(..., gt=0)
    currency: str = config.DEFAULT_CURRENCY
    paymentProvider: str = "stripe"
    paymentMethod: str = "card"
    cardLast4: str
    paymentStatus: Literal["pending", "approved"] = "pending"
    status: ContactRequestStatus = "pending"


class SubmittedBy(BaseModel):
    name: RequiredStr
    email: EmailStr
    phone: OptionalStr = None


class SuccessStory(BaseModel):
    """
    Success stories collection (moderated)
    Collection: "SuccessStories"
    """
    coupleNames: RequiredStr
    story: LongText
    rating: int = Field(..., ge=1, le=5)
    marriageDate: RequiredStr
    biodataIds: List[str] = Field(default_factory=list)
    submittedBy: SubmittedBy
    status: SuccessStoryStatus = "pending"
    adminNote: Optional[str] = None


class ContactMessage(BaseModel):
    """
    "Contact us" inbox
    Collection: "ContactMessages"
    """
    name: RequiredStr
    email: EmailStr
    channel: str = "email"
    subject: Optional[str] = None
    message: LongText
    status: ContactMessageStatus = "new"
    adminNote: Optional[str] = None


# -----------------------------
# Request bodies
# -----------------------------

class TokenRequest(BaseModel):
    email: EmailStr


class RegisterRequest(BaseModel):
    email: EmailStr
    uid: RequiredStr
    displayName: OptionalStr = None
    photoURL: OptionalStr = None


class ProfileUpdate(BaseModel):
    uid: RequiredStr
    displayName: OptionalStr = None
    email: Optional[str] = None
    photoURL: OptionalStr = None
    phoneNumber: OptionalStr = None
    address: OptionalStr = None
    bio: OptionalStr = None


class BiodataIn(BaseModel):
    biodataType: RequiredStr
    name: RequiredStr
    dateOfBirth: RequiredStr
    height: RequiredStr
    weight: RequiredStr
    age: Union[int, float]
    occupation: RequiredStr
    race: RequiredStr
    permanentDivision: RequiredStr
    presentDivision: RequiredStr
    expectedPartnerHeight: RequiredStr
    expectedPartnerWeight: RequiredStr
    mobileNumber: RequiredStr
    profileImage: OptionalStr = None
    fatherName: OptionalStr = None
    motherName: OptionalStr = None
    expectedPartnerAge: OptionalStr = None
    about: OptionalStr = None

    @field_validator("age", mode="before")
    @classmethod
    def check_age(cls, value):
        try:
            age = float(value)
        except (TypeError, ValueError):
            raise ValueError(AGE_ERROR)
        if isinstance(value, bool) or not math.isfinite(age) or age < 18:
            raise ValueError(AGE_ERROR)
        return int(age) if age.is_integer() else age


class PaymentIn(BaseModel):
    amount: float
    currency: Optional[str] = None
    cardLast4: Any = Field(None, validate_default=True)
    paymentMethod: Optional[str] = None
    paymentProvider: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise ValueError(AMOUNT_ERROR)
        if isinstance(value, bool) or not math.isfinite(amount) or amount <= 0:
            raise ValueError(AMOUNT_ERROR)
        return amount

    @field_validator("cardLast4", mode="before")
    @classmethod
    def check_card_last4(cls, value):
        return normalize_card_last4(value)


class ContactRequestIn(PaymentIn):
    biodataId: RequiredStr


class FavoriteIn(BaseModel):
    uid: RequiredStr
    biodataId: RequiredStr


class RoleUpdate(BaseModel):
    role: Role


class SuccessStoryIn(BaseModel):
    coupleNames: RequiredStr
    story: LongText
    rating: int = Field(..., ge=1, le=5)
    marriageDate: RequiredStr
    biodataIds: List[str] = Field(default_factory=list)
    submittedBy: SubmittedBy


class ContactMessageIn(BaseModel):
    name: RequiredStr
    email: EmailStr
    channel: Optional[str] = None
    subject: OptionalStr = None
    message: LongText


class SuccessStoryStatusUpdate(BaseModel):
    status: SuccessStoryStatus
    adminNote: Optional[str] = None


class ContactMessageStatusUpdate(BaseModel):
    status: ContactMessageStatus
    adminNote: Optional[str] = None
