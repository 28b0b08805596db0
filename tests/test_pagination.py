import pytest

from pagination import clamp_page_params, page_metadata
from tests.conftest import make_biodata


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 15)),
        (0, 0, (1, 1)),
        (-4, 500, (1, 100)),
        (3, 20, (3, 20)),
    ],
)
def test_clamp_page_params(page, limit, expected):
    assert clamp_page_params(page, limit) == expected


def test_page_metadata_clamps_to_last_page():
    meta = page_metadata(total=31, page=999, limit=15)
    assert meta == {
        "total": 31,
        "page": 3,
        "limit": 15,
        "totalPages": 3,
        "hasNext": False,
        "hasPrev": True,
    }


def test_empty_collection_has_one_page():
    meta = page_metadata(total=0, page=5, limit=10)
    assert meta["totalPages"] == 1
    assert meta["page"] == 1
    assert not meta["hasNext"] and not meta["hasPrev"]


def test_listing_clamps_requested_page(client, db):
    for n in range(1, 32):
        make_biodata(db, n, minutes_ago=n)

    res = client.get("/biodata", params={"page": 999, "limit": 15})

    assert res.status_code == 200
    body = res.json()
    assert body["pagination"]["page"] == 3
    assert body["pagination"]["totalPages"] == 3
    assert body["pagination"]["hasNext"] is False
    assert body["pagination"]["hasPrev"] is True
    assert len(body["data"]) == 1
    # oldest record lands on the last page
    assert body["data"][0]["biodataId"] == "PRNT-31"


def test_listing_first_page_is_newest_first(client, db):
    for n in range(1, 5):
        make_biodata(db, n, minutes_ago=10 - n)

    body = client.get("/biodata", params={"limit": 2}).json()

    assert [b["biodataId"] for b in body["data"]] == ["PRNT-4", "PRNT-3"]
    assert body["pagination"]["hasNext"] is True
    assert body["pagination"]["hasPrev"] is False
    assert "mobileNumber" not in body["data"][0]


def test_listing_limit_is_capped(client, db):
    make_biodata(db, 1)
    body = client.get("/biodata", params={"limit": 1000}).json()
    assert body["pagination"]["limit"] == 100


def test_listing_filters(client, db):
    make_biodata(db, 1, biodataType="Male", permanentDivision="Dhaka", age=24)
    make_biodata(db, 2, biodataType="female", permanentDivision="Dhaka", age=27)
    make_biodata(db, 3, biodataType="Female", permanentDivision="Sylhet", age=33)
    make_biodata(db, 12, biodataType="Female", permanentDivision="dhaka", age=40)
    make_biodata(db, 5, isPublished=False, biodataType="Female")

    def ids(**params):
        data = client.get("/biodata", params=params).json()["data"]
        return sorted(b["biodataId"] for b in data)

    assert ids(type="FEMALE") == ["PRNT-12", "PRNT-2", "PRNT-3"]
    assert ids(type="all") == ["PRNT-1", "PRNT-12", "PRNT-2", "PRNT-3"]
    assert ids(type="female", division="DHAKA") == ["PRNT-12", "PRNT-2"]
    assert ids(minAge=25, maxAge=35) == ["PRNT-2", "PRNT-3"]
    assert ids(searchId="1") == ["PRNT-1", "PRNT-12"]


def test_filter_input_is_not_a_regex(client, db):
    make_biodata(db, 1, biodataType="Male")
    data = client.get("/biodata", params={"type": ".*"}).json()["data"]
    assert data == []
