"""Request bodies accepted by the HTTP API.

Fields are snake_case in Python and camelCase on the wire (the frontend's
shape). Each entity has a create model; `partial()` derives the matching
merge-patch model in which every field is optional.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union, get_args

from pydantic import BaseModel, ConfigDict, EmailStr, Field, create_model, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        """Fields for a create call (unset optional fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_patch(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


def _reject_null(cls, v: Any) -> Any:
    if v is None:
        raise ValueError("may not be null")
    return v


def partial(model: Type[ApiModel]) -> Type[ApiModel]:
    """Derive a merge-patch model: same fields and constraints, all optional.

    Omitted fields stay unset. An explicit null is only accepted where the
    create model itself allows None.
    """
    fields: Dict[str, Any] = {}
    not_null = []
    for name, info in model.model_fields.items():
        ann = info.annotation
        if info.metadata:
            ann = Annotated[(ann, *info.metadata)]
        fields[name] = (Optional[ann], None)
        if type(None) not in get_args(info.annotation):
            not_null.append(name)

    validators = {}
    if not_null:
        validators["reject_null"] = field_validator(*not_null)(_reject_null)
    return create_model(
        model.__name__.replace("Create", "Patch"),
        __base__=ApiModel,
        __validators__=validators,
        **fields,
    )


# -----------------------------
# Auth
# -----------------------------


class LoginRequest(ApiModel):
    """Either field may carry the identifier; `username` may hold an email."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: str

    @property
    def identifier(self) -> str:
        return (self.email or self.username or "").strip()


class RegisterRequest(ApiModel):
    name: Optional[str] = None
    email: EmailStr
    username: Optional[str] = None
    password: str


class CreateUserRequest(ApiModel):
    name: Optional[str] = None
    email: EmailStr
    username: Optional[str] = None
    password: str
    role: Literal["admin", "staff", "user"] = "user"


# -----------------------------
# Services
# -----------------------------


class Faq(ApiModel):
    question: str
    answer: str


class ServiceCreate(ApiModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    short_desc: str = Field(min_length=1)
    price: str = Field(min_length=1)
    image_url: Optional[str] = None
    featured: bool = False
    duration: Optional[str] = None
    coverage: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    includes: List[str] = Field(default_factory=list)
    faqs: List[Faq] = Field(default_factory=list)
    recommended_frequency: Optional[str] = None
    seasonal_availability: List[str] = Field(default_factory=list)
    gallery_images: List[str] = Field(default_factory=list)


# -----------------------------
# Portfolio
# -----------------------------


class BeforeAfterImage(ApiModel):
    before: str
    after: str
    caption: Optional[str] = None
    rich_description: Optional[str] = None
    order: int = 0


class ClientTestimonial(ApiModel):
    client_name: Optional[str] = None
    comment: Optional[str] = None
    display_permission: bool = False


class Seo(ApiModel):
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class PortfolioItemCreate(ApiModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    service_id: Optional[str] = None
    image_url: Optional[str] = None
    images: List[BeforeAfterImage] = Field(default_factory=list)
    location: Optional[str] = None
    completion_date: Optional[datetime] = None
    project_duration: Optional[str] = None
    difficulty_level: Optional[Literal["Easy", "Moderate", "Complex"]] = None
    client_testimonial: Optional[ClientTestimonial] = None
    featured: bool = False
    seo: Optional[Seo] = None
    status: Literal["Published", "Draft"] = "Draft"
    view_count: int = Field(0, ge=0)


# -----------------------------
# Blog
# -----------------------------


class BlogSection(ApiModel):
    type: Literal["text", "image", "quote", "heading", "list"]
    content: Optional[str] = None
    image_url: Optional[str] = None
    caption: Optional[str] = None
    level: Optional[int] = None
    items: List[str] = Field(default_factory=list)
    alignment: Literal["left", "center", "right"] = "left"


class BlogPostCreate(ApiModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    excerpt: str = Field(min_length=1)
    image_url: Optional[str] = None
    sections: List[BlogSection] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None


# -----------------------------
# Inquiries / appointments
# -----------------------------

InquiryStatus = Literal["new", "in-progress", "resolved", "archived"]
AppointmentStatus = Literal["Scheduled", "Completed", "Cancelled", "Rescheduled"]


class ContactRequest(ApiModel):
    """Public contact form."""

    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    message: str = Field(min_length=1)
    service_id: Optional[str] = None


class InquiryCreate(ContactRequest):
    status: InquiryStatus = "new"


class AppointmentRequest(ApiModel):
    """Public booking form."""

    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    building_name: Optional[str] = None
    street_name: str = Field(min_length=1)
    house_number: str = Field(min_length=1)
    city: str = Field(min_length=1)
    county: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    service_id: str = Field(min_length=1)
    date: datetime
    priority: Literal["Normal", "Urgent"] = "Normal"


class AppointmentCreate(AppointmentRequest):
    notes: Optional[str] = None
    status: AppointmentStatus = "Scheduled"


# -----------------------------
# Testimonials / subscriptions / home page content
# -----------------------------


class TestimonialCreate(ApiModel):
    name: str = Field(min_length=1)
    role: Optional[str] = None
    content: str = Field(min_length=1)
    rating: Optional[Literal[1, 2, 3, 4, 5]] = None
    image_url: Optional[str] = None
    display_order: int = 0


class PlanFeatureIn(ApiModel):
    name: str = Field(min_length=1)
    value: Optional[str] = None


class SubscriptionCreate(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: str = "#FFFFFF"
    price: str = Field(min_length=1)
    # Plain strings are accepted and normalized to {name, value} on write.
    features: List[Union[PlanFeatureIn, str, Dict[str, Any]]] = Field(default_factory=list)
    is_popular: bool = False
    display_order: Optional[int] = None
    image_url: Optional[str] = None


class CarouselImageCreate(ApiModel):
    image_url: str = Field(min_length=1)
    alt: Optional[str] = None
    order: Optional[int] = None


class FeatureCardCreate(ApiModel):
    image_url: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    order: Optional[int] = None


class ReorderRequest(ApiModel):
    direction: Literal["up", "down"]


ServicePatch = partial(ServiceCreate)
PortfolioItemPatch = partial(PortfolioItemCreate)
BlogPostPatch = partial(BlogPostCreate)
InquiryPatch = partial(InquiryCreate)
AppointmentPatch = partial(AppointmentCreate)
TestimonialPatch = partial(TestimonialCreate)
SubscriptionPatch = partial(SubscriptionCreate)
CarouselImagePatch = partial(CarouselImageCreate)
FeatureCardPatch = partial(FeatureCardCreate)
