"""Admin dashboard aggregation."""

from typing import Any, Dict, List

import config
from pagination import exact_ci


# Legacy documents predate the payment status field and count as approved
def _approved_payment(status_field: str) -> Dict[str, Any]:
    return {"$or": [{status_field: "approved"}, {status_field: {"$exists": False}}]}


def _revenue_by_currency(collection, match: Dict[str, Any], amount_path: str, currency_path: str) -> Dict[str, float]:
    pipeline: List[Dict[str, Any]] = [
        {"$match": match},
        {"$group": {"_id": f"${currency_path}", "amount": {"$sum": f"${amount_path}"}}},
    ]
    totals: Dict[str, float] = {}
    for row in collection.aggregate(pipeline):
        currency = row["_id"] or config.DEFAULT_CURRENCY
        totals[currency] = round(totals.get(currency, 0) + float(row.get("amount") or 0), 2)
    return totals


def _merge(*sources: Dict[str, float]) -> Dict[str, float]:
    merged: Dict[str, float] = {}
    for source in sources:
        for currency, amount in source.items():
            merged[currency] = round(merged.get(currency, 0) + amount, 2)
    return merged


def revenue_summary(db) -> Dict[str, Any]:
    contact = _revenue_by_currency(
        db.contact_requests,
        {"status": "approved", **_approved_payment("paymentStatus")},
        "amount",
        "currency",
    )
    biodata = _revenue_by_currency(
        db.biodata,
        {"premiumStatus": "approved", **_approved_payment("premiumPayment.status")},
        "premiumPayment.amount",
        "premiumPayment.currency",
    )
    users = _revenue_by_currency(
        db.users,
        {"premiumUserStatus": "approved", **_approved_payment("premiumUserPayment.status")},
        "premiumUserPayment.amount",
        "premiumUserPayment.currency",
    )
    by_currency = _merge(contact, biodata, users)
    return {
        "contactRequests": contact,
        "biodataPremium": biodata,
        "userPremium": users,
        "byCurrency": by_currency,
        "total": round(sum(by_currency.values()), 2),
    }


def overview(db) -> Dict[str, Any]:
    biodata = db.biodata
    users = db.users
    return {
        "biodata": {
            "total": biodata.count_documents({}),
            "male": biodata.count_documents({"biodataType": exact_ci("male")}),
            "female": biodata.count_documents({"biodataType": exact_ci("female")}),
            "premium": biodata.count_documents({"premiumStatus": "approved"}),
            "pendingPremium": biodata.count_documents({"premiumStatus": "pending"}),
        },
        "users": {
            "total": users.count_documents({}),
            "premium": users.count_documents(
                {"$or": [{"userType": "premium"}, {"premiumUserStatus": "approved"}]}
            ),
            "pendingPremium": users.count_documents({"premiumUserStatus": "pending"}),
        },
        "contactRequests": {
            "pending": db.contact_requests.count_documents({"status": "pending"}),
            "approved": db.contact_requests.count_documents({"status": "approved"}),
        },
        "contactMessages": {
            "new": db.contact_messages.count_documents({"status": "new"}),
        },
        "successStories": {
            "pending": db.success_stories.count_documents({"status": {"$in": ["pending", "under_review"]}}),
        },
        "revenue": revenue_summary(db),
    }
