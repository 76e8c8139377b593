from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from garden_site import db as names
from garden_site.db import MongoDatabase, to_object_id
from garden_site.util.time import utcnow

from .mapping import (
    encode_features,
    map_appointment,
    map_blog_post,
    map_carousel_image,
    map_feature_card,
    map_inquiry,
    map_portfolio_item,
    map_service,
    map_subscription,
    map_testimonial,
    map_user,
)
from .repository import DocumentRepository, OrderedRepository
from .results import Failed, NotFound, Outcome


def _debug(msg: str) -> None:
    print(f"[storage] {msg}")


GENERAL_SERVICE_NAME = "General Service"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def public_user(user: Mapping[str, Any]) -> Dict[str, Any]:
    d = dict(user)
    d.pop("password", None)
    return d


class ServiceRepository(DocumentRepository):
    """Services; deleting one also removes the portfolio items that reference it."""

    def __init__(self, database: MongoDatabase, *, portfolio: DocumentRepository):
        super().__init__(
            database,
            collection=names.SERVICES,
            mapper=map_service,
            defaults=lambda: {
                "isFeatured": False,
                "benefits": [],
                "includes": [],
                "faqs": [],
                "seasonalAvailability": [],
                "galleryImages": [],
            },
            renames={"featured": "isFeatured"},
        )
        self.portfolio = portfolio

    def after_remove(self, doc: Mapping[str, Any]) -> None:
        # Best effort, not transactional: the service is already gone.
        try:
            res = self.portfolio.coll.delete_many({"serviceId": doc["_id"]})
            _debug(f"Deleted {res.deleted_count} portfolio items for service {doc['_id']}")
        except Exception as e:
            _debug(f"Error deleting portfolio items for service {doc['_id']}: {e}")


class UserRepository(DocumentRepository):
    """Users; emails and usernames are stored lowercased.

    The `password` field holds a credential produced by
    `garden_site.auth.security.hash_password`; hashing happens in auth.crud.
    """

    def __init__(self, database: MongoDatabase):
        super().__init__(
            database,
            collection=names.USERS,
            mapper=map_user,
            defaults=lambda: {"role": "user"},
        )

    def _normalize(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if "email" in doc:
            doc["email"] = normalize_email(doc["email"])
        if "username" in doc:
            doc["username"] = normalize_username(doc["username"])
        return doc

    def prepare_insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        return self._normalize(doc)

    def prepare_update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "password" in changes and not changes["password"]:
            changes.pop("password")
        return self._normalize(changes)

    def find_one_by(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        if not value:
            return None
        try:
            doc = self.coll.find_one({field: value})
        except Exception as e:
            _debug(f"Error fetching user by {field}={value}: {e}")
            return None
        return self.mapper(doc) if doc is not None else None


class Storage:
    """One entry point for every collection the site uses.

    Each entity kind is a repository attribute with the same contract
    (`get/list/create/update/delete` plus the Outcome-returning
    `find/fetch_all/insert/patch/remove`). The methods below are the
    entity-specific extras.
    """

    def __init__(self, database: MongoDatabase):
        self.database = database

        self.users = UserRepository(database)
        self.portfolio = DocumentRepository(
            database,
            collection=names.PORTFOLIO_ITEMS,
            mapper=map_portfolio_item,
            defaults=lambda: {
                "featured": False,
                "status": "Draft",
                "viewCount": 0,
                "images": [],
                "seo": {"metaTitle": "", "metaDescription": "", "tags": []},
            },
            references=("serviceId",),
        )
        self.services = ServiceRepository(database, portfolio=self.portfolio)
        self.blog = DocumentRepository(
            database,
            collection=names.BLOG_POSTS,
            mapper=map_blog_post,
            sort=(("publishedAt", -1),),
            defaults=lambda: {"imageUrl": None, "sections": [], "tags": [], "publishedAt": utcnow()},
        )
        self.inquiries = DocumentRepository(
            database,
            collection=names.INQUIRIES,
            mapper=map_inquiry,
            sort=(("createdAt", -1),),
            defaults=lambda: {"status": "new"},
            references=("serviceId",),
        )
        self.appointments = DocumentRepository(
            database,
            collection=names.APPOINTMENTS,
            mapper=map_appointment,
            sort=(("date", 1),),
            defaults=lambda: {"priority": "Normal", "status": "Scheduled"},
            references=("serviceId",),
        )
        self.testimonials = DocumentRepository(
            database,
            collection=names.TESTIMONIALS,
            mapper=map_testimonial,
            sort=(("displayOrder", 1),),
            defaults=lambda: {"displayOrder": 0},
        )
        self.subscriptions = OrderedRepository(
            database,
            collection=names.SUBSCRIPTIONS,
            mapper=map_subscription,
            order_field="displayOrder",
            compact=False,
            defaults=lambda: {"color": "#FFFFFF", "features": [], "isPopular": False},
            encoder=_encode_subscription,
        )
        self.carousel_images = OrderedRepository(
            database,
            collection=names.CAROUSEL_IMAGES,
            mapper=map_carousel_image,
            defaults=lambda: {"alt": "Garden showcase"},
        )
        self.feature_cards = OrderedRepository(
            database,
            collection=names.FEATURE_CARDS,
            mapper=map_feature_card,
        )

    # -----------------------------
    # Users
    # -----------------------------

    def get_user(self, id: Any) -> Optional[Dict[str, Any]]:
        return self.users.get(id)

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.users.find_one_by("email", normalize_email(email))

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return self.users.find_one_by("username", normalize_username(username))

    def list_users(self) -> List[Dict[str, Any]]:
        return self.users.list()

    def count_users(self) -> int:
        return self.users.count()

    def set_user_credential(self, id: Any, credential: str) -> bool:
        """Replace the stored credential (already produced by hash_password)."""
        oid = to_object_id(id)
        if oid is None:
            return False
        try:
            res = self.users.coll.update_one(
                {"_id": oid},
                {"$set": {"password": credential, "updatedAt": utcnow()}},
            )
        except Exception as e:
            _debug(f"Error storing credential for user {id}: {e}")
            return False
        return res.matched_count > 0

    def touch_last_login(self, id: Any) -> None:
        oid = to_object_id(id)
        if oid is None:
            return
        try:
            self.users.coll.update_one({"_id": oid}, {"$set": {"lastLoginAt": utcnow()}})
        except Exception as e:
            _debug(f"Error touching last login for user {id}: {e}")

    def delete_user(self, id: Any) -> bool:
        return self.users.delete(id)

    # -----------------------------
    # Services / portfolio
    # -----------------------------

    def get_featured_services(self) -> List[Dict[str, Any]]:
        return self.services.list({"isFeatured": True})

    def delete_service(self, id: Any) -> bool:
        return self.services.delete(id)

    def get_portfolio_items_by_service(self, service_id: Any) -> List[Dict[str, Any]]:
        oid = to_object_id(service_id)
        if oid is None:
            _debug(f"portfolio by service: invalid service id {service_id!r}")
            return []
        return self.portfolio.list({"serviceId": oid})

    def service_name(self, service_id: Any) -> str:
        """Name for display next to a weak service reference."""
        svc = self.services.get(service_id) if service_id else None
        if not svc or not svc.get("name"):
            return GENERAL_SERVICE_NAME
        return str(svc["name"])

    def record_portfolio_view(self, id: Any) -> Outcome[Dict[str, Any]]:
        oid = to_object_id(id)
        if oid is None:
            return NotFound("invalid_id")
        try:
            res = self.portfolio.coll.update_one({"_id": oid}, {"$inc": {"viewCount": 1}})
        except Exception as e:
            _debug(f"Error recording view for portfolio item {id}: {e}")
            return Failed(e)
        if res.matched_count == 0:
            return NotFound()
        return self.portfolio.find(oid)

    # -----------------------------
    # Ordered collections
    # -----------------------------

    def reorder_carousel_image(self, id: Any, direction: str) -> bool:
        return self.carousel_images.reorder(id, direction)

    def reorder_feature_card(self, id: Any, direction: str) -> bool:
        return self.feature_cards.reorder(id, direction)

    def by_kind(self) -> Dict[str, DocumentRepository]:
        return {
            "services": self.services,
            "portfolio": self.portfolio,
            "blog": self.blog,
            "testimonials": self.testimonials,
            "inquiries": self.inquiries,
            "appointments": self.appointments,
            "subscriptions": self.subscriptions,
            "carousel-images": self.carousel_images,
            "feature-cards": self.feature_cards,
        }

    def stats(self) -> Dict[str, int]:
        """Document counts for the admin dashboard."""
        out = {kind: repo.count() for kind, repo in self.by_kind().items()}
        out["users"] = self.users.count()
        out["newInquiries"] = self.inquiries.count({"status": "new"})
        out["scheduledAppointments"] = self.appointments.count({"status": "Scheduled"})
        return out


def _encode_subscription(doc: Dict[str, Any]) -> Dict[str, Any]:
    if "features" in doc and doc["features"] is not None:
        doc["features"] = encode_features(doc["features"])
    return doc


__all__ = [
    "GENERAL_SERVICE_NAME",
    "Storage",
    "public_user",
    "normalize_email",
    "normalize_username",
]
