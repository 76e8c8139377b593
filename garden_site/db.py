from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


# Collection names mirror the entity kinds one-to-one.
USERS = "users"
SERVICES = "services"
PORTFOLIO_ITEMS = "portfolioitems"
BLOG_POSTS = "blogposts"
INQUIRIES = "inquiries"
APPOINTMENTS = "appointments"
TESTIMONIALS = "testimonials"
SUBSCRIPTIONS = "subscriptions"
CAROUSEL_IMAGES = "carouselImages"
FEATURE_CARDS = "featureCards"

# (collection, keys, unique)
INDEXES: List[Tuple[str, List[Tuple[str, int]], bool]] = [
    (USERS, [("email", ASCENDING)], True),
    (USERS, [("username", ASCENDING)], True),
    (PORTFOLIO_ITEMS, [("serviceId", ASCENDING)], False),
    (BLOG_POSTS, [("publishedAt", DESCENDING)], False),
    (APPOINTMENTS, [("date", ASCENDING)], False),
    (CAROUSEL_IMAGES, [("order", ASCENDING)], False),
    (FEATURE_CARDS, [("order", ASCENDING)], False),
]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Convert an external string id to an ObjectId.

    Returns None for anything that is not a 24-char hex id, so callers can
    treat a malformed id the same way as a missing document.
    """
    if isinstance(value, ObjectId):
        return value
    if value is None:
        return None
    s = str(value).strip()
    if not ObjectId.is_valid(s):
        return None
    try:
        return ObjectId(s)
    except (InvalidId, TypeError):
        return None


def id_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class MongoDatabase:
    """Process-wide MongoDB handle with an explicit lifecycle.

    Build one at startup, call `connect()`, hand it to `Storage`, and call
    `close()` on shutdown. Tests inject a `mongomock.MongoClient`; an injected
    client must be built with `tz_aware=True` so reads return UTC datetimes.
    """

    def __init__(self, uri: str, db_name: str, *, client: Any | None = None):
        self.uri = uri
        self.db_name = db_name
        self._client: Any | None = client
        self._owns_client = client is None
        self._db: Database | None = None

    @property
    def connected(self) -> bool:
        return self._db is not None

    def connect(self) -> "MongoDatabase":
        if self._db is not None:
            return self

        if self._client is None:
            _debug(f"Connecting to MongoDB database={self.db_name}")
            self._client = MongoClient(self.uri, tz_aware=True, serverSelectionTimeoutMS=5000)
            # Fail fast when the server is unreachable.
            self._client.admin.command("ping")

        self._db = self._client[self.db_name]
        self.ensure_indexes()
        _debug(f"Connected to MongoDB database={self.db_name}")
        return self

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._db = None
        _debug("MongoDB connection closed")

    def __enter__(self) -> "MongoDatabase":
        return self.connect()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def db(self) -> Database:
        if self._db is None:
            raise RuntimeError("database_not_connected")
        return self._db

    def collection(self, name: str) -> Collection:
        return self.db[name]

    def ensure_indexes(self) -> None:
        for name, keys, unique in INDEXES:
            self.db[name].create_index(keys, unique=unique)

    def ping(self) -> bool:
        try:
            self.db.command("ping")
            return True
        except Exception as e:
            _debug(f"ping failed: {e}")
            return False

    def collection_counts(self) -> Dict[str, int]:
        names = [
            USERS,
            SERVICES,
            PORTFOLIO_ITEMS,
            BLOG_POSTS,
            INQUIRIES,
            APPOINTMENTS,
            TESTIMONIALS,
            SUBSCRIPTIONS,
            CAROUSEL_IMAGES,
            FEATURE_CARDS,
        ]
        return {n: int(self.db[n].count_documents({})) for n in names}
