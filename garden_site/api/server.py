# Route handlers are registered inside create_app(); their body models are
# resolved from the local scope, so annotations must stay real objects here
# (no `from __future__ import annotations`).

import time
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from garden_site import __version__
from garden_site.auth import optional_session, require_admin
from garden_site.auth.crud import (
    bootstrap_admin_if_needed,
    create_user,
    session_user,
    touch_last_login,
    verify_user_credentials,
)
from garden_site.auth.security import SessionClaims, create_access_token
from garden_site.config import Config, load_config
from garden_site.db import MongoDatabase
from garden_site.models import (
    ApiModel,
    AppointmentCreate,
    AppointmentPatch,
    AppointmentRequest,
    BlogPostCreate,
    BlogPostPatch,
    CarouselImageCreate,
    CarouselImagePatch,
    ContactRequest,
    CreateUserRequest,
    FeatureCardCreate,
    FeatureCardPatch,
    InquiryCreate,
    InquiryPatch,
    LoginRequest,
    PortfolioItemCreate,
    PortfolioItemPatch,
    RegisterRequest,
    ReorderRequest,
    ServiceCreate,
    ServicePatch,
    SubscriptionCreate,
    SubscriptionPatch,
    TestimonialCreate,
    TestimonialPatch,
)
from garden_site.storage import (
    GENERAL_SERVICE_NAME,
    Failed,
    Found,
    Outcome,
    Storage,
    public_user,
)
from garden_site.storage.seed import create_sample_subscriptions, seed_demo_data
from garden_site.util.time import utcnow_iso


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


MIN_PASSWORD_LENGTH = 6

# kind (URL segment) -> (label used in messages, create body, patch body)
ADMIN_RESOURCES: Dict[str, tuple] = {
    "services": ("Service", ServiceCreate, ServicePatch),
    "portfolio": ("Portfolio item", PortfolioItemCreate, PortfolioItemPatch),
    "blog": ("Blog post", BlogPostCreate, BlogPostPatch),
    "testimonials": ("Testimonial", TestimonialCreate, TestimonialPatch),
    "inquiries": ("Inquiry", InquiryCreate, InquiryPatch),
    "appointments": ("Appointment", AppointmentCreate, AppointmentPatch),
    "subscriptions": ("Subscription", SubscriptionCreate, SubscriptionPatch),
    "carousel-images": ("Carousel image", CarouselImageCreate, CarouselImagePatch),
    "feature-cards": ("Feature card", FeatureCardCreate, FeatureCardPatch),
}

_MISSING_REASONS = ("not_found", "invalid_id")

_REGISTER_ERRORS = {
    "email_exists": "Email already registered",
    "username_exists": "Username already taken",
}


def _storage(request: Request) -> Storage:
    return request.app.state.storage


def _cfg(request: Request) -> Config:
    return request.app.state.cfg


def _unwrap(out: Outcome, label: str) -> Any:
    """Found -> value; NotFound -> 404 (or 400 for a bad reference); Failed -> 500."""
    if isinstance(out, Found):
        return out.value
    if isinstance(out, Failed):
        raise HTTPException(status_code=500, detail=f"Error accessing {label.lower()}")
    if out.reason in _MISSING_REASONS:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    raise HTTPException(status_code=400, detail="invalid_reference")


def _with_service_names(storage: Storage, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    names: Dict[Optional[str], str] = {}
    out = []
    for item in items:
        sid = item.get("serviceId")
        if sid not in names:
            names[sid] = storage.service_name(sid) if sid else GENERAL_SERVICE_NAME
        out.append({**item, "serviceName": names[sid]})
    return out


# -----------------------------
# Error bodies
# -----------------------------


def _validation_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors[".".join(loc) or "body"] = str(err.get("msg", "invalid"))
    return errors


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": "validation_failed", "errors": _validation_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def _on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        body = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _on_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        _debug(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        return JSONResponse(status_code=500, content={"message": "internal_server_error"})


# -----------------------------
# Auth
# -----------------------------


def _auth_router() -> APIRouter:
    router = APIRouter(prefix="/api/admin")

    @router.post("/login")
    def admin_login(payload: LoginRequest, request: Request) -> Dict[str, Any]:
        storage = _storage(request)
        cfg = _cfg(request)

        user = verify_user_credentials(storage, payload.identifier, payload.password)
        if user is None:
            _debug(f"Failed login for {payload.identifier!r}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        token = create_access_token(
            secret=cfg.JWT_SECRET,
            user_id=user["id"],
            email=user.get("email") or "",
            role=user.get("role") or "user",
            expires_in=cfg.JWT_EXPIRES_IN,
        )
        touch_last_login(storage, user["id"])
        return {"success": True, "token": token, "user": session_user(user)}

    @router.post("/register", status_code=201)
    def admin_register(payload: RegisterRequest, request: Request) -> Dict[str, Any]:
        if not _cfg(request).ADMIN_REGISTER:
            raise HTTPException(status_code=403, detail="Admin registration is disabled")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        try:
            user = create_user(
                _storage(request),
                email=payload.email,
                password=payload.password,
                username=payload.username,
                name=payload.name,
                role="admin",
            )
        except ValueError as e:
            code = str(e)
            raise HTTPException(status_code=400, detail=_REGISTER_ERRORS.get(code, code))
        _debug(f"Registered admin {user.get('email')}")
        return {"success": True, "message": "Admin account created"}

    @router.get("/register-status")
    def admin_register_status(request: Request) -> Dict[str, Any]:
        return {"adminregister": bool(_cfg(request).ADMIN_REGISTER)}

    @router.get("/validate-session")
    def admin_validate_session(
        request: Request,
        claims: Optional[SessionClaims] = Depends(optional_session),
    ) -> Dict[str, Any]:
        if claims is None:
            return {"valid": False}
        user = _storage(request).get_user(claims.subject_id)
        if user is None:
            return {"valid": False}
        return {"valid": True, "user": session_user(user)}

    return router


# -----------------------------
# Admin (every route behind require_admin)
# -----------------------------


def _register_resource(
    router: APIRouter,
    kind: str,
    label: str,
    create_body: Type[ApiModel],
    patch_body: Type[ApiModel],
) -> None:
    name = kind.replace("-", "_")

    def list_items(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).by_kind()[kind].fetch_all(), label)

    def get_item(id: str, request: Request) -> Dict[str, Any]:
        return _unwrap(_storage(request).by_kind()[kind].find(id), label)

    def create_item(payload: create_body, request: Request) -> Dict[str, Any]:  # type: ignore[valid-type]
        item = _unwrap(_storage(request).by_kind()[kind].insert(payload.to_document()), label)
        _debug(f"Created {kind} {item.get('id')}")
        return item

    def update_item(id: str, payload: patch_body, request: Request) -> Dict[str, Any]:  # type: ignore[valid-type]
        return _unwrap(_storage(request).by_kind()[kind].patch(id, payload.to_patch()), label)

    def delete_item(id: str, request: Request) -> Dict[str, Any]:
        _unwrap(_storage(request).by_kind()[kind].remove(id), label)
        _debug(f"Deleted {kind} {id}")
        return {"success": True}

    path = f"/{kind}"
    router.add_api_route(path, list_items, methods=["GET"], name=f"admin_list_{name}")
    router.add_api_route(path + "/{id}", get_item, methods=["GET"], name=f"admin_get_{name}")
    router.add_api_route(path, create_item, methods=["POST"], status_code=201, name=f"admin_create_{name}")
    router.add_api_route(path + "/{id}", update_item, methods=["PUT"], name=f"admin_replace_{name}")
    router.add_api_route(path + "/{id}", update_item, methods=["PATCH"], name=f"admin_patch_{name}")
    router.add_api_route(path + "/{id}", delete_item, methods=["DELETE"], name=f"admin_delete_{name}")


def _admin_router() -> APIRouter:
    router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])

    for kind, (label, create_body, patch_body) in ADMIN_RESOURCES.items():
        _register_resource(router, kind, label, create_body, patch_body)

    @router.post("/carousel-images/{id}/reorder")
    def admin_reorder_carousel_image(id: str, payload: ReorderRequest, request: Request) -> Dict[str, Any]:
        if not _storage(request).reorder_carousel_image(id, payload.direction):
            raise HTTPException(status_code=400, detail="Unable to reorder carousel image")
        return {"success": True}

    @router.post("/feature-cards/{id}/reorder")
    def admin_reorder_feature_card(id: str, payload: ReorderRequest, request: Request) -> Dict[str, Any]:
        if not _storage(request).reorder_feature_card(id, payload.direction):
            raise HTTPException(status_code=400, detail="Unable to reorder feature card")
        return {"success": True}

    @router.post("/create-sample-subscriptions")
    def admin_create_sample_subscriptions(request: Request) -> Dict[str, Any]:
        created = create_sample_subscriptions(_storage(request))
        if not created:
            return {"success": False, "message": "Subscriptions already exist"}
        return {"success": True, "subscriptions": created}

    @router.get("/stats")
    def admin_stats(request: Request) -> Dict[str, int]:
        return _storage(request).stats()

    @router.get("/users")
    def admin_list_users(request: Request) -> List[Dict[str, Any]]:
        return [public_user(u) for u in _storage(request).list_users()]

    @router.post("/users", status_code=201)
    def admin_create_user(payload: CreateUserRequest, request: Request) -> Dict[str, Any]:
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        try:
            return create_user(
                _storage(request),
                email=payload.email,
                password=payload.password,
                username=payload.username,
                name=payload.name,
                role=payload.role,
            )
        except ValueError as e:
            code = str(e)
            raise HTTPException(status_code=400, detail=_REGISTER_ERRORS.get(code, code))

    @router.delete("/users/{id}")
    def admin_delete_user(
        id: str,
        request: Request,
        claims: SessionClaims = Depends(require_admin),
    ) -> Dict[str, Any]:
        if id == claims.subject_id:
            raise HTTPException(status_code=400, detail="Cannot delete your own account")
        if not _storage(request).delete_user(id):
            raise HTTPException(status_code=404, detail="User not found")
        return {"success": True}

    return router


# -----------------------------
# Public site
# -----------------------------


def _public_router() -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.get("/healthz")
    def healthz(request: Request) -> Dict[str, Any]:
        db_ok = _storage(request).database.ping()
        return {"status": "ok", "time": utcnow_iso(), "database": "up" if db_ok else "down"}

    @router.get("/services")
    def list_services(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).services.fetch_all(), "Service")

    @router.get("/services/featured")
    def list_featured_services(request: Request) -> List[Dict[str, Any]]:
        return _storage(request).get_featured_services()

    @router.get("/services/{id}")
    def get_service(id: str, request: Request) -> Dict[str, Any]:
        return _unwrap(_storage(request).services.find(id), "Service")

    @router.get("/services/{id}/portfolio")
    def list_service_portfolio(id: str, request: Request) -> List[Dict[str, Any]]:
        storage = _storage(request)
        _unwrap(storage.services.find(id), "Service")
        items = [i for i in storage.get_portfolio_items_by_service(id) if i.get("status") == "Published"]
        return _with_service_names(storage, items)

    @router.get("/portfolio")
    def list_portfolio(request: Request) -> List[Dict[str, Any]]:
        storage = _storage(request)
        items = _unwrap(storage.portfolio.fetch_all({"status": "Published"}), "Portfolio item")
        return _with_service_names(storage, items)

    @router.get("/portfolio/{id}")
    def get_portfolio_item(id: str, request: Request) -> Dict[str, Any]:
        storage = _storage(request)
        item = _unwrap(storage.portfolio.find(id), "Portfolio item")
        if item.get("status") != "Published":
            raise HTTPException(status_code=404, detail="Portfolio item not found")
        item = _unwrap(storage.record_portfolio_view(id), "Portfolio item")
        return _with_service_names(storage, [item])[0]

    @router.get("/blog")
    def list_blog_posts(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).blog.fetch_all(), "Blog post")

    @router.get("/blog/{id}")
    def get_blog_post(id: str, request: Request) -> Dict[str, Any]:
        return _unwrap(_storage(request).blog.find(id), "Blog post")

    @router.get("/testimonials")
    def list_testimonials(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).testimonials.fetch_all(), "Testimonial")

    @router.get("/carousel-images")
    def list_carousel_images(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).carousel_images.fetch_all(), "Carousel image")

    @router.get("/feature-cards")
    def list_feature_cards(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).feature_cards.fetch_all(), "Feature card")

    @router.get("/subscriptions")
    def list_subscriptions(request: Request) -> List[Dict[str, Any]]:
        return _unwrap(_storage(request).subscriptions.fetch_all(), "Subscription")

    @router.get("/subscriptions/{id}")
    def get_subscription(id: str, request: Request) -> Dict[str, Any]:
        return _unwrap(_storage(request).subscriptions.find(id), "Subscription")

    @router.post("/contact", status_code=201)
    def submit_contact(payload: ContactRequest, request: Request) -> Dict[str, Any]:
        inquiry = _unwrap(_storage(request).inquiries.insert(payload.to_document()), "Inquiry")
        _debug(f"New inquiry {inquiry.get('id')} from {inquiry.get('email')}")
        return inquiry

    @router.post("/appointments", status_code=201)
    def book_appointment(payload: AppointmentRequest, request: Request) -> Dict[str, Any]:
        storage = _storage(request)
        if storage.services.get(payload.service_id) is None:
            raise HTTPException(status_code=400, detail="Service not found")
        appt = _unwrap(storage.appointments.insert(payload.to_document()), "Appointment")
        _debug(f"New appointment {appt.get('id')} on {appt.get('date')}")
        return appt

    return router


# -----------------------------
# App factory
# -----------------------------


def create_app(cfg: Optional[Config] = None, database: Optional[MongoDatabase] = None) -> FastAPI:
    """Build the API.

    Both arguments default to the environment (`load_config()`, then a
    MongoDatabase on cfg.DB_URI). Tests pass a Config and a database backed
    by mongomock.
    """
    cfg = cfg or load_config()
    if not cfg.JWT_SECRET:
        raise RuntimeError("jwt_secret_missing")
    database = database or MongoDatabase(cfg.DB_URI, cfg.DB_NAME)

    app = FastAPI(title="Garden Services Site API", version=__version__)
    app.state.cfg = cfg
    app.state.storage = Storage(database)

    # The admin panel and public site may be served from another origin in development.
    origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def _log_requests(request: Request, call_next: Any) -> Any:
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            _debug(f"{request.method} {request.url.path} {response.status_code} in {elapsed_ms:.0f}ms")
        return response

    @app.on_event("startup")
    def _on_startup() -> None:
        database.connect()
        storage: Storage = app.state.storage
        if cfg.SEED_DEMO_DATA:
            if seed_demo_data(storage, cfg):
                _debug("Seeded demo data")
        else:
            bootstrap_admin_if_needed(cfg, storage)

    @app.on_event("shutdown")
    def _on_shutdown() -> None:
        database.close()

    _install_error_handlers(app)
    app.include_router(_auth_router())
    app.include_router(_admin_router())
    app.include_router(_public_router())
    return app
