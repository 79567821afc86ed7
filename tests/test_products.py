from models import AnalyticsEvent, Description
from services import crud
from tests.conftest import user_by_email


def _create(client, headers, **fields):
    body = {"name": "Desk Lamp", "category": "Lighting", "features": ["LED", "dimmable"], "keywords": ["lamp"]}
    body.update(fields)
    r = client.post("/api/products", json=body, headers=headers)
    assert r.status_code == 201, f"status={r.status_code} body={r.text}"
    return r.json()


def test_create_product_records_event(client, auth, db):
    p = _create(client, auth)
    assert p["name"] == "Desk Lamp"
    assert p["features"] == ["LED", "dimmable"]
    assert p["status"] == "draft"

    r = client.get("/api/analytics", headers=auth)
    events = r.json()
    assert [e["eventType"] for e in events] == ["product_created"]
    assert events[0]["productId"] == p["id"]


def test_create_product_validates_body(client, auth):
    r = client.post("/api/products", json={"category": "x"}, headers=auth)
    assert r.status_code == 422, f"status={r.status_code} body={r.text}"
    r = client.post("/api/products", json={"name": "x", "status": "archived"}, headers=auth)
    assert r.status_code == 422, f"status={r.status_code} body={r.text}"


def test_list_newest_first_with_paging(client, auth):
    ids = [_create(client, auth, name=f"P{i}")["id"] for i in range(4)]

    r = client.get("/api/products", headers=auth)
    assert [p["id"] for p in r.json()] == list(reversed(ids))

    r = client.get("/api/products?limit=2&offset=1", headers=auth)
    assert [p["id"] for p in r.json()] == [ids[2], ids[1]]


def test_list_is_scoped_to_owner(client, auth, other_auth):
    _create(client, auth)
    r = client.get("/api/products", headers=other_auth)
    assert r.json() == []


def test_partial_update(client, auth):
    p = _create(client, auth)
    r = client.put(f"/api/products/{p['id']}", json={"status": "published"}, headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json()["status"] == "published"
    assert r.json()["name"] == "Desk Lamp"


def test_update_rejects_null_for_required_fields(client, auth):
    p = _create(client, auth)
    for body in ({"name": None}, {"status": None}, {"name": None, "status": None}):
        r = client.put(f"/api/products/{p['id']}", json=body, headers=auth)
        assert r.status_code == 422, f"{body}: status={r.status_code} body={r.text}"

    r = client.get(f"/api/products/{p['id']}", headers=auth)
    assert r.json()["name"] == "Desk Lamp"
    assert r.json()["status"] == "draft"


def test_update_accepts_null_for_optional_fields(client, auth):
    p = _create(client, auth)
    r = client.put(f"/api/products/{p['id']}", json={"category": None}, headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json()["category"] is None


def test_missing_product_is_404(client, auth):
    r = client.get("/api/products/999", headers=auth)
    assert r.status_code == 404, f"status={r.status_code} body={r.text}"
    assert r.json() == {"message": "Product not found"}


def test_foreign_product_is_403(client, auth, other_auth):
    p = _create(client, auth)
    pid = p["id"]
    for method, path, kw in (
        ("get", f"/api/products/{pid}", {}),
        ("put", f"/api/products/{pid}", {"json": {"name": "mine now"}}),
        ("delete", f"/api/products/{pid}", {}),
        ("get", f"/api/products/{pid}/descriptions", {}),
    ):
        r = getattr(client, method)(path, headers=other_auth, **kw)
        assert r.status_code == 403, f"{method} {path}: status={r.status_code} body={r.text}"
        assert r.json() == {"message": "Access denied"}

    r = client.get(f"/api/products/{pid}", headers=auth)
    assert r.json()["name"] == "Desk Lamp"


def test_delete_removes_descriptions_keeps_analytics(client, auth, db):
    p = _create(client, auth)
    user = user_by_email(db)
    d = crud.create_description(db, product_id=p["id"], user_id=user.id, content="old copy", seo_score=6)
    crud.create_analytics(db, user.id, "description_generated", {"seoScore": 6}, p["id"], d.id)

    r = client.delete(f"/api/products/{p['id']}", headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json() == {"message": "Product deleted successfully"}

    db.expire_all()
    assert db.query(Description).filter(Description.product_id == p["id"]).count() == 0
    events = db.query(AnalyticsEvent).filter(AnalyticsEvent.product_id == p["id"]).all()
    assert {e.event_type for e in events} == {"product_created", "description_generated"}

    r = client.get(f"/api/products/{p['id']}", headers=auth)
    assert r.status_code == 404


def test_product_description_history(client, auth, db):
    p = _create(client, auth)
    user = user_by_email(db)
    crud.create_description(db, product_id=p["id"], user_id=user.id, content="v1", is_active=False)
    crud.create_description(db, product_id=p["id"], user_id=user.id, content="v2")

    r = client.get(f"/api/products/{p['id']}/descriptions", headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert [d["content"] for d in r.json()] == ["v2", "v1"]
