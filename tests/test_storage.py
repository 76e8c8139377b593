from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from garden_site.storage import Failed, Found, InvalidReference, NotFound
from garden_site.storage.mapping import decode_features, plan_features


def _service(storage, name="Lawn Care", **kw):
    data = {"name": name, "description": "d", "shortDesc": "s", "price": "10"}
    data.update(kw)
    return storage.services.create(data)


def _portfolio(storage, service_id, title="Job", **kw):
    data = {"title": title, "description": "d", "serviceId": service_id}
    data.update(kw)
    return storage.portfolio.create(data)


# -----------------------------
# Generic contract
# -----------------------------


def test_create_fills_defaults_and_timestamps(storage):
    svc = _service(storage)
    assert isinstance(svc["id"], str)
    assert svc["featured"] is False
    assert svc["benefits"] == [] and svc["faqs"] == [] and svc["galleryImages"] == []
    assert svc["createdAt"] is not None and svc["updatedAt"] is not None

    item = _portfolio(storage, svc["id"])
    assert item["status"] == "Draft"
    assert item["viewCount"] == 0
    assert item["images"] == []
    assert item["seo"] == {"metaTitle": "", "metaDescription": "", "tags": []}
    assert item["serviceId"] == svc["id"]

    stored = storage.portfolio.coll.find_one({"_id": ObjectId(item["id"])})
    assert isinstance(stored["serviceId"], ObjectId)


def test_featured_is_stored_as_is_featured(storage):
    svc = _service(storage, featured=True)
    stored = storage.services.coll.find_one({"_id": ObjectId(svc["id"])})
    assert stored["isFeatured"] is True
    assert "featured" not in stored
    assert [s["id"] for s in storage.get_featured_services()] == [svc["id"]]


def test_get_returns_none_for_unknown_and_invalid_ids(storage):
    assert storage.services.get(str(ObjectId())) is None
    assert storage.services.get("not-an-id") is None
    assert isinstance(storage.services.find("not-an-id"), NotFound)


def test_update_is_a_merge_patch(storage):
    svc = _service(storage, duration="1h")
    updated = storage.services.update(svc["id"], {"price": "20"})
    assert updated["price"] == "20"
    assert updated["name"] == "Lawn Care"
    assert updated["duration"] == "1h"


def test_empty_patch_keeps_document(storage):
    svc = _service(storage)
    updated = storage.services.update(svc["id"], {})
    assert updated["name"] == "Lawn Care"


def test_update_unknown_id_returns_none(storage):
    assert storage.services.update(str(ObjectId()), {"price": "1"}) is None
    assert storage.services.update("bogus", {"price": "1"}) is None


def test_delete(storage):
    svc = _service(storage)
    assert storage.services.delete(svc["id"]) is True
    assert storage.services.get(svc["id"]) is None
    assert storage.services.delete(svc["id"]) is False
    assert storage.services.delete("bogus") is False


def test_invalid_reference(storage):
    with pytest.raises(InvalidReference):
        storage.portfolio.create({"title": "t", "description": "d", "serviceId": "nope"})

    svc = _service(storage)
    item = _portfolio(storage, svc["id"])
    out = storage.portfolio.patch(item["id"], {"serviceId": "nope"})
    assert isinstance(out, NotFound)
    assert out.reason not in ("not_found", "invalid_id")


def test_outcomes_distinguish_failure_from_absence(database, storage):
    svc = _service(storage)
    assert isinstance(storage.services.find(svc["id"]), Found)
    assert isinstance(storage.services.find(str(ObjectId())), NotFound)

    database.close()
    out = storage.services.find(svc["id"])
    assert isinstance(out, Failed)
    assert storage.services.get(svc["id"]) is None
    assert storage.services.list() == []


# -----------------------------
# Ordering
# -----------------------------


def test_blog_posts_newest_first(storage):
    now = datetime.now(timezone.utc)
    storage.blog.create({"title": "old", "content": "c", "excerpt": "e", "publishedAt": now - timedelta(days=3)})
    storage.blog.create({"title": "new", "content": "c", "excerpt": "e", "publishedAt": now})
    storage.blog.create({"title": "mid", "content": "c", "excerpt": "e", "publishedAt": now - timedelta(days=1)})
    assert [p["title"] for p in storage.blog.list()] == ["new", "mid", "old"]


def test_blog_post_published_at_defaults_to_now(storage):
    post = storage.blog.create({"title": "t", "content": "c", "excerpt": "e"})
    assert post["publishedAt"] is not None
    assert post["imageUrl"] is None


def test_appointments_by_date(storage):
    svc = _service(storage)
    base = datetime(2026, 5, 1, tzinfo=timezone.utc)
    for days, name in ((5, "c"), (1, "a"), (3, "b")):
        storage.appointments.create({"name": name, "serviceId": svc["id"], "date": base + timedelta(days=days)})
    appts = storage.appointments.list()
    assert [a["name"] for a in appts] == ["a", "b", "c"]
    assert appts[0]["priority"] == "Normal"
    assert appts[0]["status"] == "Scheduled"


def test_testimonials_by_display_order(storage):
    storage.testimonials.create({"name": "b", "content": "x", "displayOrder": 2})
    storage.testimonials.create({"name": "a", "content": "x", "displayOrder": 1})
    storage.testimonials.create({"name": "z", "content": "x"})
    assert [t["name"] for t in storage.testimonials.list()] == ["z", "a", "b"]


def test_services_in_insertion_order(storage):
    for name in ("c", "a", "b"):
        _service(storage, name=name)
    assert [s["name"] for s in storage.services.list()] == ["c", "a", "b"]


# -----------------------------
# Ordered collections
# -----------------------------


def test_order_assigned_on_create(storage):
    first = storage.feature_cards.create({"imageUrl": "/a.jpg", "title": "A", "description": "d"})
    second = storage.feature_cards.create({"imageUrl": "/b.jpg", "title": "B", "description": "d"})
    assert (first["order"], second["order"]) == (0, 1)

    img = storage.carousel_images.create({"imageUrl": "/c.jpg"})
    assert img["alt"] == "Garden showcase"
    assert img["order"] == 0


def test_delete_compacts_positions(storage):
    ids = [storage.carousel_images.create({"imageUrl": f"/{i}.jpg"})["id"] for i in range(4)]
    assert storage.carousel_images.delete(ids[1]) is True
    remaining = storage.carousel_images.list()
    assert [i["id"] for i in remaining] == [ids[0], ids[2], ids[3]]
    assert [i["order"] for i in remaining] == [0, 1, 2]


def test_reorder_swaps_neighbours(storage):
    ids = [storage.feature_cards.create({"imageUrl": "/x", "title": t, "description": "d"})["id"] for t in "ABC"]
    assert storage.reorder_feature_card(ids[2], "up") is True
    assert [c["title"] for c in storage.feature_cards.list()] == ["A", "C", "B"]
    assert storage.reorder_feature_card(ids[0], "up") is False
    assert storage.reorder_feature_card(ids[1], "down") is False
    assert storage.reorder_feature_card(str(ObjectId()), "down") is False
    with pytest.raises(ValueError):
        storage.reorder_feature_card(ids[0], "sideways")


def test_subscription_display_order(storage):
    a = storage.subscriptions.create({"name": "A", "price": "1"})
    b = storage.subscriptions.create({"name": "B", "price": "2"})
    assert (a["displayOrder"], b["displayOrder"]) == (0, 1)
    assert a["color"] == "#FFFFFF"
    assert a["isPopular"] is False


# -----------------------------
# Services / portfolio extras
# -----------------------------


def test_deleting_service_cascades_to_portfolio(storage):
    keep = _service(storage, name="Keep")
    gone = _service(storage, name="Gone")
    _portfolio(storage, gone["id"], title="p1")
    _portfolio(storage, gone["id"], title="p2")
    kept = _portfolio(storage, keep["id"], title="p3")

    assert len(storage.get_portfolio_items_by_service(gone["id"])) == 2
    assert storage.delete_service(gone["id"]) is True
    assert storage.get_portfolio_items_by_service(gone["id"]) == []
    assert [p["id"] for p in storage.portfolio.list()] == [kept["id"]]


def test_portfolio_by_service_invalid_id(storage):
    assert storage.get_portfolio_items_by_service("bogus") == []


def test_record_portfolio_view(storage):
    svc = _service(storage)
    item = _portfolio(storage, svc["id"])
    storage.record_portfolio_view(item["id"])
    out = storage.record_portfolio_view(item["id"])
    assert isinstance(out, Found)
    assert out.value["viewCount"] == 2
    assert isinstance(storage.record_portfolio_view(str(ObjectId())), NotFound)


def test_service_name_fallback(storage):
    svc = _service(storage, name="Hedges")
    assert storage.service_name(svc["id"]) == "Hedges"
    assert storage.service_name(str(ObjectId())) == "General Service"
    assert storage.service_name(None) == "General Service"


# -----------------------------
# Plan features
# -----------------------------


def test_decode_feature_shapes():
    feats = decode_features(
        [
            "Lawn mowing",
            "Edging: Included",
            {"name": "Hedges", "value": "2x/year"},
            {"name": "Weeding"},
            {"Leaf clearing": "Autumn"},
            None,
        ]
    )
    assert [f.as_dict() for f in feats] == [
        {"name": "Lawn mowing", "value": "Inclus"},
        {"name": "Edging", "value": "Inclus"},
        {"name": "Hedges", "value": "2x/year"},
        {"name": "Weeding", "value": "Inclus"},
        {"name": "Leaf clearing", "value": "Autumn"},
    ]


def test_decode_features_mapping():
    feats = decode_features({"Mowing": "Weekly", "Pruning": ""})
    assert [f.as_dict() for f in feats] == [
        {"name": "Mowing", "value": "Weekly"},
        {"name": "Pruning", "value": "Inclus"},
    ]


def test_plan_features_fall_back_to_legacy_fields():
    assert [f.name for f in plan_features({"features": [], "includes": ["A", "B"]})] == ["A", "B"]
    assert [f.name for f in plan_features({"benefits": ["C"]})] == ["C"]
    assert plan_features({}) == []


def test_subscription_features_canonical_on_read_and_write(storage):
    sub = storage.subscriptions.create({"name": "Plan", "price": "9", "features": ["Mowing: Included", {"Pruning": "2x"}]})
    assert sub["features"] == [{"name": "Mowing", "value": "Inclus"}, {"name": "Pruning", "value": "2x"}]
    stored = storage.subscriptions.coll.find_one({"_id": ObjectId(sub["id"])})
    assert stored["features"] == sub["features"]

    # Documents written by older code are decoded the same way.
    legacy_id = storage.subscriptions.coll.insert_one(
        {"name": "Old", "price": "5", "includes": ["Weeding: Included"], "displayOrder": 9}
    ).inserted_id
    legacy = storage.subscriptions.get(str(legacy_id))
    assert legacy["features"] == [{"name": "Weeding", "value": "Inclus"}]


# -----------------------------
# Round trips
# -----------------------------


def test_create_then_get_returns_the_same_entity(storage):
    svc = _service(storage)
    appt = storage.appointments.create(
        {
            "name": "Sam",
            "email": "sam@example.com",
            "serviceId": svc["id"],
            "date": datetime(2026, 6, 1, 9, 0, 0, 123456, tzinfo=timezone.utc),
        }
    )
    assert storage.appointments.get(appt["id"]) == appt
    assert appt["date"] == datetime(2026, 6, 1, 9, 0, 0, 123000, tzinfo=timezone.utc)

    post = storage.blog.create({"title": "t", "content": "c", "excerpt": "e"})
    fetched = storage.blog.get(post["id"])
    assert fetched == post
    assert fetched["publishedAt"].utcoffset() == timedelta(0)
    assert fetched["createdAt"].tzinfo is not None

    assert storage.services.get(svc["id"]) == svc


def test_update_leaves_other_fields_unchanged(storage):
    svc = _service(storage, duration="1h", benefits=["a", "b"], featured=True)
    updated = storage.services.update(svc["id"], {"price": "20"})

    assert updated["price"] == "20"
    assert updated["updatedAt"] >= svc["updatedAt"]
    untouched = {k: v for k, v in svc.items() if k not in ("price", "updatedAt")}
    assert {k: updated[k] for k in untouched} == untouched
    assert storage.services.get(svc["id"]) == updated


def test_naive_datetimes_are_stored_as_utc(storage):
    post = storage.blog.create(
        {"title": "t", "content": "c", "excerpt": "e", "publishedAt": datetime(2026, 3, 1, 8, 30)}
    )
    assert storage.blog.get(post["id"])["publishedAt"] == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)
