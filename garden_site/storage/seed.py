"""Demo content for a fresh database.

Kept out of `garden_site.storage.__init__` because it depends on
`garden_site.auth.crud`, which itself imports the storage package.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List

from garden_site.auth.crud import bootstrap_admin_if_needed
from garden_site.config import Config
from garden_site.util.time import utcnow

from .storage import Storage


def _debug(msg: str) -> None:
    print(f"[seed] {msg}")


_SERVICES: List[Dict[str, Any]] = [
    {
        "name": "Lawn Care",
        "description": "Regular mowing, edging and feeding to keep your lawn healthy all season.",
        "shortDesc": "Mowing, edging and feeding",
        "price": "From 35 EUR",
        "featured": True,
        "duration": "1-2 hours",
        "coverage": "Up to 500 m2",
        "benefits": ["Even, dense grass", "Fewer weeds", "No green waste to handle"],
        "includes": ["Mowing", "Edging", "Clipping removal"],
        "faqs": [
            {"question": "How often should the lawn be mowed?", "answer": "Weekly in spring and summer."},
        ],
        "recommendedFrequency": "Weekly",
        "seasonalAvailability": ["Spring", "Summer", "Autumn"],
    },
    {
        "name": "Hedge Trimming",
        "description": "Shaping and trimming of hedges and shrubs, waste removed the same day.",
        "shortDesc": "Clean lines for hedges and shrubs",
        "price": "From 50 EUR",
        "featured": True,
        "duration": "Half a day",
        "includes": ["Trimming", "Shaping", "Waste removal"],
        "recommendedFrequency": "Twice a year",
        "seasonalAvailability": ["Spring", "Autumn"],
    },
    {
        "name": "Garden Design",
        "description": "From a first sketch to planting: a garden laid out around how you use it.",
        "shortDesc": "Plans and planting for new gardens",
        "price": "On quote",
        "featured": False,
        "benefits": ["Personal layout", "Plants suited to your soil"],
        "seasonalAvailability": ["Spring", "Summer", "Autumn", "Winter"],
    },
]

_TESTIMONIALS: List[Dict[str, Any]] = [
    {
        "name": "Claire M.",
        "role": "Homeowner",
        "content": "The lawn has never looked this good. Punctual and careful team.",
        "rating": 5,
        "displayOrder": 0,
    },
    {
        "name": "Paul D.",
        "role": "Property manager",
        "content": "Reliable hedge trimming across our three buildings.",
        "rating": 4,
        "displayOrder": 1,
    },
]

_FEATURE_CARDS: List[Dict[str, Any]] = [
    {"imageUrl": "/images/features/experience.jpg", "title": "Experienced team", "description": "Gardeners with years on the job."},
    {"imageUrl": "/images/features/eco.jpg", "title": "Eco-friendly", "description": "Green waste composted, no harsh chemicals."},
    {"imageUrl": "/images/features/quote.jpg", "title": "Free quote", "description": "A visit and a written quote at no cost."},
    {"imageUrl": "/images/features/schedule.jpg", "title": "Flexible scheduling", "description": "Book online at a time that suits you."},
]

SAMPLE_SUBSCRIPTIONS: List[Dict[str, Any]] = [
    {
        "name": "Essential",
        "description": "Basic upkeep for small gardens.",
        "color": "#E8F5E9",
        "price": "49 EUR / month",
        "features": [
            {"name": "Lawn mowing", "value": "2x/month"},
            {"name": "Edging", "value": "Inclus"},
            "Green waste removal",
        ],
        "isPopular": False,
        "displayOrder": 0,
    },
    {
        "name": "Comfort",
        "description": "Everything a family garden needs.",
        "color": "#C8E6C9",
        "price": "89 EUR / month",
        "features": [
            {"name": "Lawn mowing", "value": "Weekly"},
            {"name": "Hedge trimming", "value": "2x/year"},
            "Green waste removal",
            "Seasonal planting: Included",
        ],
        "isPopular": True,
        "displayOrder": 1,
    },
    {
        "name": "Premium",
        "description": "Full care with priority booking.",
        "color": "#A5D6A7",
        "price": "149 EUR / month",
        "features": [
            {"name": "Lawn mowing", "value": "Weekly"},
            {"name": "Hedge trimming", "value": "4x/year"},
            {"name": "Priority booking", "value": "Inclus"},
            "Green waste removal",
            "Seasonal planting",
        ],
        "isPopular": False,
        "displayOrder": 2,
    },
]


def seed_demo_data(storage: Storage, cfg: Config) -> bool:
    """Fill an empty database with demo content.

    Only runs when there are 0 users, so an existing deployment is never
    touched. Returns True when anything was written.
    """
    if storage.count_users() > 0:
        return False

    admin = bootstrap_admin_if_needed(cfg, storage)
    if admin is None:
        _debug("No bootstrap admin configured; skipping admin user")

    services = [storage.services.create(s) for s in _SERVICES]
    _debug(f"Created {len(services)} services")

    now = utcnow()
    portfolio = [
        {
            "title": "Back garden makeover",
            "description": "Overgrown lawn restored and borders replanted.",
            "serviceId": services[0]["id"],
            "location": "Lyon",
            "completionDate": now - timedelta(days=30),
            "projectDuration": "3 days",
            "difficultyLevel": "Moderate",
            "featured": True,
            "status": "Published",
            "clientTestimonial": {
                "clientName": "Claire M.",
                "comment": "Unrecognisable in the best way.",
                "displayPermission": True,
            },
        },
        {
            "title": "Hedge row restoration",
            "description": "Forty metres of laurel hedge reshaped.",
            "serviceId": services[1]["id"],
            "location": "Villeurbanne",
            "completionDate": now - timedelta(days=60),
            "difficultyLevel": "Easy",
            "status": "Published",
        },
    ]
    for item in portfolio:
        storage.portfolio.create(item)
    _debug(f"Created {len(portfolio)} portfolio items")

    for t in _TESTIMONIALS:
        storage.testimonials.create(t)
    _debug(f"Created {len(_TESTIMONIALS)} testimonials")

    posts = [
        {
            "title": "Preparing your lawn for spring",
            "excerpt": "Five jobs to do before the first mow.",
            "content": "Rake out thatch, aerate compacted areas, overseed bare patches, feed, then mow high.",
            "tags": ["lawn", "spring"],
            "publishedAt": now - timedelta(days=7),
        },
        {
            "title": "When to trim a hedge",
            "excerpt": "Timing matters for nesting birds and regrowth.",
            "content": "Most hedges are best trimmed in late spring and again in early autumn.",
            "tags": ["hedges"],
            "publishedAt": now - timedelta(days=21),
        },
    ]
    for p in posts:
        storage.blog.create(p)
    _debug(f"Created {len(posts)} blog posts")

    for card in _FEATURE_CARDS:
        storage.feature_cards.create(card)
    _debug(f"Created {len(_FEATURE_CARDS)} feature cards")

    return True


def create_sample_subscriptions(storage: Storage) -> List[Dict[str, Any]]:
    """Insert the three sample plans unless plans already exist."""
    if storage.subscriptions.count() > 0:
        _debug("Subscriptions already exist; skipping samples")
        return []
    created = [storage.subscriptions.create(plan) for plan in SAMPLE_SUBSCRIPTIONS]
    _debug(f"Created {len(created)} sample subscriptions")
    return created
