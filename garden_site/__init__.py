"""Garden services site - Backend.

Serves the public marketing pages' data (services, portfolio, blog,
testimonials, subscriptions, carousel / feature content), takes contact
requests and appointment bookings, and backs the admin panel.

Core pieces:
- Admin auth: salted password credentials + signed, time-limited JWTs.
- Storage: one CRUD contract over every MongoDB collection, mapping
  documents to the JSON shapes the frontend consumes.

See DESIGN.md for the module overview.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
