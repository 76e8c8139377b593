"""Translate between stored MongoDB documents and the external JSON shape.

Reads always expose `id` as a string and reference ids (`serviceId`) as
strings. Writes go the other way in `repository.py`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from garden_site.db import id_str


DEFAULT_FEATURE_VALUE = "Inclus"
_INCLUDED_SUFFIX = ": Included"


def _list(v: Any) -> List[Any]:
    return list(v) if isinstance(v, (list, tuple)) else []


def _timestamps(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {"createdAt": doc.get("createdAt"), "updatedAt": doc.get("updatedAt")}


def map_user(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name") or "",
        "email": doc.get("email") or "",
        "username": doc.get("username") or "",
        "password": doc.get("password") or "",
        "role": doc.get("role") or "user",
        **_timestamps(doc),
    }


def map_service(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name"),
        "description": doc.get("description"),
        "shortDesc": doc.get("shortDesc"),
        "price": doc.get("price"),
        "imageUrl": doc.get("imageUrl"),
        # Stored as isFeatured.
        "featured": bool(doc.get("isFeatured", False)),
        "duration": doc.get("duration") or None,
        "coverage": doc.get("coverage") or None,
        "benefits": _list(doc.get("benefits")),
        "includes": _list(doc.get("includes")),
        "faqs": _list(doc.get("faqs")),
        "recommendedFrequency": doc.get("recommendedFrequency") or None,
        "seasonalAvailability": _list(doc.get("seasonalAvailability")),
        "galleryImages": _list(doc.get("galleryImages")),
        **_timestamps(doc),
    }


def map_portfolio_item(doc: Mapping[str, Any]) -> Dict[str, Any]:
    seo = doc.get("seo") or {}
    return {
        "id": id_str(doc["_id"]),
        "title": doc.get("title"),
        "description": doc.get("description"),
        "serviceId": id_str(doc.get("serviceId")),
        "imageUrl": doc.get("imageUrl"),
        "images": _list(doc.get("images")),
        "location": doc.get("location"),
        "completionDate": doc.get("completionDate"),
        "projectDuration": doc.get("projectDuration"),
        "difficultyLevel": doc.get("difficultyLevel"),
        "clientTestimonial": doc.get("clientTestimonial") or None,
        "featured": bool(doc.get("featured", False)),
        "seo": {
            "metaTitle": seo.get("metaTitle") or "",
            "metaDescription": seo.get("metaDescription") or "",
            "tags": _list(seo.get("tags")),
        },
        "status": doc.get("status") or "Draft",
        "viewCount": int(doc.get("viewCount") or 0),
        **_timestamps(doc),
    }


def map_blog_post(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "title": doc.get("title"),
        "content": doc.get("content"),
        "excerpt": doc.get("excerpt"),
        "imageUrl": doc.get("imageUrl"),
        "sections": _list(doc.get("sections")),
        "tags": _list(doc.get("tags")),
        "publishedAt": doc.get("publishedAt"),
        **_timestamps(doc),
    }


def map_inquiry(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name"),
        "email": doc.get("email"),
        "phone": doc.get("phone"),
        "message": doc.get("message"),
        "serviceId": id_str(doc.get("serviceId")),
        "status": doc.get("status") or "new",
        **_timestamps(doc),
    }


def map_appointment(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name"),
        "email": doc.get("email"),
        "phone": doc.get("phone"),
        "buildingName": doc.get("buildingName"),
        "streetName": doc.get("streetName"),
        "houseNumber": doc.get("houseNumber"),
        "city": doc.get("city"),
        "county": doc.get("county"),
        "postalCode": doc.get("postalCode"),
        "serviceId": id_str(doc.get("serviceId")),
        "date": doc.get("date"),
        "priority": doc.get("priority") or "Normal",
        "notes": doc.get("notes"),
        "status": doc.get("status") or "Scheduled",
        **_timestamps(doc),
    }


def map_testimonial(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name"),
        "role": doc.get("role"),
        "content": doc.get("content"),
        "rating": doc.get("rating"),
        "imageUrl": doc.get("imageUrl"),
        "displayOrder": int(doc.get("displayOrder") or 0),
    }


def map_carousel_image(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "imageUrl": doc.get("imageUrl"),
        "alt": doc.get("alt") or "",
        "order": int(doc.get("order") or 0),
        **_timestamps(doc),
    }


def map_feature_card(doc: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": id_str(doc["_id"]),
        "imageUrl": doc.get("imageUrl"),
        "title": doc.get("title"),
        "description": doc.get("description"),
        "order": int(doc.get("order") or 0),
    }


# -----------------------------
# Subscription plan features
# -----------------------------


@dataclass(frozen=True)
class PlanFeature:
    """Canonical plan feature line: a name and its value ("Inclus", "2x/month", ...)."""

    name: str
    value: str = DEFAULT_FEATURE_VALUE

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}


def _clean_name(name: Any) -> str:
    s = str(name)
    if _INCLUDED_SUFFIX in s:
        s = s.split(_INCLUDED_SUFFIX, 1)[0]
    return s.strip()


def _value(v: Any) -> str:
    if v is None or v == "":
        return DEFAULT_FEATURE_VALUE
    return str(v)


def decode_feature(raw: Any) -> Optional[PlanFeature]:
    """Decode one stored feature entry, whatever shape older writers left.

    Stored entries come in four shapes:
      - "Lawn mowing" or "Lawn mowing: Included"
      - {"name": ..., "value": ...}
      - {"name": ...}
      - {"Lawn mowing": "2x/month"}  (single key object)
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        name = _clean_name(raw)
        return PlanFeature(name=name) if name else None
    if isinstance(raw, Mapping):
        if raw.get("name"):
            return PlanFeature(name=_clean_name(raw["name"]), value=_value(raw.get("value")))
        keys = [k for k in raw.keys() if k != "value"]
        if keys:
            return PlanFeature(name=_clean_name(keys[0]), value=_value(raw.get(keys[0])))
        return PlanFeature(name="Feature")
    return PlanFeature(name=str(raw))


def decode_features(raw: Any) -> List[PlanFeature]:
    if isinstance(raw, Mapping):
        # Whole mapping stored instead of a list: {"Lawn mowing": "Inclus", ...}
        return [PlanFeature(name=_clean_name(k), value=_value(v)) for k, v in raw.items()]
    out: List[PlanFeature] = []
    for item in _list(raw):
        f = decode_feature(item)
        if f is not None:
            out.append(f)
    return out


def plan_features(doc: Mapping[str, Any]) -> List[PlanFeature]:
    """Features of a subscription document, falling back to legacy fields."""
    for field in ("features", "includes", "benefits"):
        feats = decode_features(doc.get(field))
        if feats:
            return feats
    return []


def encode_features(items: Iterable[Any]) -> List[Dict[str, str]]:
    return [f.as_dict() for f in decode_features(list(items))]


def map_subscription(doc: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        display_order = int(doc.get("displayOrder") or 0)
    except (TypeError, ValueError):
        display_order = 0
    return {
        "id": id_str(doc["_id"]),
        "name": doc.get("name"),
        "description": doc.get("description") or "",
        "color": doc.get("color") or "#FFFFFF",
        "price": doc.get("price") or "",
        "features": [f.as_dict() for f in plan_features(doc)],
        "isPopular": bool(doc.get("isPopular", False)),
        "displayOrder": display_order,
        "imageUrl": doc.get("imageUrl") or None,
    }
