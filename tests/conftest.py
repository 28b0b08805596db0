from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import ACCESS_COOKIE, create_access_token
from database import Database
from main import create_app


@pytest.fixture
def db():
    database = Database(mongomock.MongoClient()["porinity_test"])
    database.ensure_indexes()
    return database


@pytest.fixture
def app(db):
    return create_app(db)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def client_as(app):
    """Return a client authenticated with an access token for the given identity."""

    def _client_as(uid, email=None, role="user", user_type="basic"):
        token = create_access_token({
            "uid": uid,
            "email": email if email is not None else f"{uid}@example.com",
            "role": role,
            "userType": user_type,
        })
        return TestClient(app, cookies={ACCESS_COOKIE: token})

    return _client_as


@pytest.fixture
def admin_client(client_as):
    return client_as("admin-1", role="admin")


def make_user(db, uid, email=None, role="user", **extra):
    doc = {
        "uid": uid,
        "email": email or f"{uid}@example.com",
        "displayName": uid.title(),
        "role": role,
        "userType": "basic",
        "premiumUserStatus": "none",
        "favorites": [],
        "createdAt": datetime.now(timezone.utc),
    }
    doc.update(extra)
    db.users.insert_one(doc)
    return doc


def make_biodata(db, number, uid=None, minutes_ago=0, **extra):
    doc = {
        "biodataId": f"PRNT-{number}",
        "numericBiodataId": number,
        "uid": uid or f"owner-{number}",
        "biodataType": "Male",
        "name": f"Person {number}",
        "age": 25,
        "occupation": "Engineer",
        "permanentDivision": "Dhaka",
        "permanentAddress": "Dhaka",
        "contactEmail": f"owner-{number}@example.com",
        "mobileNumber": "01700000000",
        "premiumStatus": "none",
        "isPublished": True,
        "createdAt": datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    }
    doc.update(extra)
    db.biodata.insert_one(doc)
    return doc


def biodata_payload(**overrides):
    payload = {
        "biodataType": "Female",
        "name": "Ayesha Rahman",
        "dateOfBirth": "1999-04-12",
        "height": "5'4\"",
        "weight": 55,
        "age": 25,
        "occupation": "Doctor",
        "race": "Fair",
        "permanentDivision": "Chattogram",
        "presentDivision": "Dhaka",
        "expectedPartnerHeight": "5'8\"",
        "expectedPartnerWeight": "70",
        "mobileNumber": "01811111111",
    }
    payload.update(overrides)
    return payload


def payment_payload(amount=5, card="4242 4242 4242 4242", **overrides):
    payload = {"amount": amount, "cardLast4": card, "currency": "usd"}
    payload.update(overrides)
    return payload
