from bson import ObjectId

from tests.conftest import make_biodata, make_user


def story_body(**overrides):
    body = {
        "coupleNames": "Rafi & Mim",
        "story": "We met through Porinity.",
        "rating": 5,
        "marriageDate": "2024-02-14",
        "submittedBy": {"name": "Rafi", "email": "rafi@example.com"},
    }
    body.update(overrides)
    return body


def test_admin_routes_require_admin(client, client_as):
    assert client.get("/admin/overview").status_code == 401
    assert client_as("u1").get("/admin/overview").status_code == 403


def test_overview_counts_and_revenue(admin_client, db):
    make_biodata(db, 1, biodataType="Male", premiumStatus="approved",
                 premiumPayment={"amount": 5, "currency": "USD", "status": "approved"})
    make_biodata(db, 2, biodataType="female", premiumStatus="pending",
                 premiumPayment={"amount": 5, "currency": "USD", "status": "pending"})
    # legacy approval recorded before payments carried a status
    make_biodata(db, 3, biodataType="Female", premiumStatus="approved",
                 premiumPayment={"amount": 5, "currency": "USD"})
    make_user(db, "u1", userType="premium", premiumUserStatus="approved",
              premiumUserPayment={"amount": 5, "currency": "USD", "status": "approved"})
    make_user(db, "u2", premiumUserStatus="pending",
              premiumUserPayment={"amount": 5, "currency": "USD", "status": "pending"})
    db.contact_requests.insert_many([
        {"biodataId": "PRNT-1", "requesterUid": "u2", "amount": 10, "currency": "USD",
         "status": "approved", "paymentStatus": "approved"},
        {"biodataId": "PRNT-2", "requesterUid": "u2", "amount": 7.5, "currency": "BDT", "status": "approved"},
        {"biodataId": "PRNT-3", "requesterUid": "u2", "amount": 10, "currency": "USD", "status": "pending",
         "paymentStatus": "pending"},
    ])
    db.contact_messages.insert_one({"name": "A", "status": "new"})
    db.success_stories.insert_many([{"status": "pending"}, {"status": "under_review"}, {"status": "approved"}])

    res = admin_client.get("/admin/overview")

    assert res.status_code == 200
    body = res.json()
    assert body["biodata"] == {"total": 3, "male": 1, "female": 2, "premium": 2, "pendingPremium": 1}
    assert body["users"] == {"total": 2, "premium": 1, "pendingPremium": 1}
    assert body["contactRequests"] == {"pending": 1, "approved": 2}
    assert body["contactMessages"] == {"new": 1}
    assert body["successStories"] == {"pending": 2}

    revenue = body["revenue"]
    assert revenue["contactRequests"] == {"USD": 10, "BDT": 7.5}
    assert revenue["biodataPremium"] == {"USD": 10}
    assert revenue["userPremium"] == {"USD": 5}
    assert revenue["byCurrency"] == {"USD": 25, "BDT": 7.5}
    assert revenue["total"] == 32.5


def test_overview_on_empty_database(admin_client):
    body = admin_client.get("/admin/overview").json()
    assert body["biodata"]["total"] == 0
    assert body["revenue"]["total"] == 0
    assert body["revenue"]["byCurrency"] == {}


def test_admin_user_listing_and_search(admin_client, db):
    make_user(db, "u1", email="karim@example.com", displayName="Karim")
    make_user(db, "u2", email="nadia@example.com", displayName="Nadia", userType="premium")
    make_user(db, "u3", email="boss@example.com", role="admin")

    everyone = admin_client.get("/admin/users").json()
    search = admin_client.get("/admin/users", params={"search": "NAD"}).json()
    admins = admin_client.get("/admin/users", params={"role": "admin"}).json()
    premium = admin_client.get("/admin/users", params={"userType": "premium"}).json()

    assert everyone["pagination"]["total"] == 3
    assert [u["uid"] for u in search["data"]] == ["u2"]
    assert [u["uid"] for u in admins["data"]] == ["u3"]
    assert [u["uid"] for u in premium["data"]] == ["u2"]


def test_admin_changes_role(admin_client, db):
    make_user(db, "u1")

    res = admin_client.patch("/admin/users/u1/role", json={"role": "admin"})
    bad = admin_client.patch("/admin/users/u1/role", json={"role": "owner"})
    missing = admin_client.patch("/admin/users/ghost/role", json={"role": "admin"})
    self_demote = admin_client.patch("/admin/users/admin-1/role", json={"role": "user"})

    assert res.json() == {"success": True, "message": "Role updated", "role": "admin"}
    assert db.users.find_one({"uid": "u1"})["role"] == "admin"
    assert bad.status_code == 400
    assert missing.status_code == 404
    assert self_demote.status_code == 400


def test_success_story_moderation(client, admin_client, db):
    created = client.post("/success-stories", json=story_body())
    assert created.status_code == 201
    story_id = created.json()["id"]
    assert client.get("/success-stories").json()["data"] == []

    reviewing = admin_client.patch(f"/admin/success-stories/{story_id}/status", json={"status": "under_review"})
    assert reviewing.json()["status"] == "under_review"

    approved = admin_client.patch(
        f"/admin/success-stories/{story_id}/status",
        json={"status": "approved", "adminNote": " lovely "},
    )
    assert approved.json() == {"success": True, "message": "Status updated", "status": "approved"}

    doc = db.success_stories.find_one({"_id": ObjectId(story_id)})
    assert doc["approvedAt"] is not None
    assert doc["reviewedAt"] is not None
    assert doc["adminNote"] == "lovely"

    public = client.get("/success-stories").json()["data"]
    assert [s["coupleNames"] for s in public] == ["Rafi & Mim"]
    assert "submittedBy" not in public[0]
    assert "adminNote" not in public[0]

    queue = admin_client.get("/admin/success-stories", params={"status": "approved"}).json()
    assert queue["data"][0]["submittedBy"]["email"] == "rafi@example.com"


def test_success_story_validation(client):
    res = client.post("/success-stories", json=story_body(rating=6))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "rating"


def test_success_story_invalid_status_and_id(admin_client):
    bad_status = admin_client.patch(f"/admin/success-stories/{ObjectId()}/status", json={"status": "published"})
    missing = admin_client.patch(f"/admin/success-stories/{ObjectId()}/status", json={"status": "approved"})
    malformed = admin_client.patch("/admin/success-stories/nope/status", json={"status": "approved"})

    assert bad_status.status_code == 400
    assert missing.status_code == 404
    assert malformed.status_code == 400


def test_contact_message_moderation(client, admin_client, db):
    created = client.post(
        "/contact-messages",
        json={"name": "Sami", "email": "sami@example.com", "message": "Need help"},
    )
    assert created.status_code == 201
    message_id = created.json()["id"]
    doc = db.contact_messages.find_one({"_id": ObjectId(message_id)})
    assert doc["status"] == "new"
    assert doc["channel"] == "email"

    inbox = admin_client.get("/admin/contact-messages", params={"status": "new"}).json()
    assert [m["id"] for m in inbox["data"]] == [message_id]

    res = admin_client.patch(f"/admin/contact-messages/{message_id}/status", json={"status": "resolved"})
    assert res.status_code == 200
    doc = db.contact_messages.find_one({"_id": ObjectId(message_id)})
    assert doc["status"] == "resolved"
    assert doc["resolvedAt"] is not None


def test_contact_message_requires_message(client):
    res = client.post("/contact-messages", json={"name": "Sami", "email": "sami@example.com", "message": ""})
    assert res.status_code == 400
    assert res.json()["message"] == "message is required"


def test_contact_message_blank_name_is_required(client):
    res = client.post("/contact-messages", json={"name": "  ", "email": "sami@example.com", "message": "Hi"})
    assert res.status_code == 400
    assert res.json()["message"] == "name is required"
