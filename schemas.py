from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON bodies are camelCase; python attributes stay snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


Tone = Literal["professional", "casual", "enthusiastic"]
Length = Literal["short", "medium", "long"]
ProductStatus = Literal["draft", "published"]


# ----------------- Users -----------------

class UserOut(CamelModel):
    id: int
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool = True
    subscription_status: str
    # None = unlimited
    api_credits: Optional[int] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    created_at: Optional[datetime] = None


# ----------------- Products -----------------

class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    category: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    original_description: Optional[str] = None
    generated_description: Optional[str] = None
    seo_score: Optional[float] = None
    status: ProductStatus = "draft"


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    features: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    original_description: Optional[str] = None
    generated_description: Optional[str] = None
    seo_score: Optional[float] = None
    status: Optional[ProductStatus] = None

    @model_validator(mode="after")
    def _no_null_required_columns(self):
        # omitted means "leave as is"; an explicit null would hit NOT NULL columns
        for field in ("name", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ProductOut(CamelModel):
    id: int
    user_id: int
    name: str
    category: Optional[str] = None
    features: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    original_description: Optional[str] = None
    generated_description: Optional[str] = None
    seo_score: Optional[float] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ----------------- Descriptions -----------------

class DescriptionOut(CamelModel):
    id: int
    product_id: Optional[int] = None
    user_id: int
    content: str
    seo_score: Optional[float] = None
    word_count: Optional[int] = None
    keyword_density: Optional[float] = None
    tone: Optional[str] = None
    length: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class DescriptionUpdate(CamelModel):
    # the only mutable field of a description
    is_active: bool


# ----------------- Analytics -----------------

class AnalyticsOut(CamelModel):
    id: int
    user_id: int
    product_id: Optional[int] = None
    description_id: Optional[int] = None
    event_type: str
    event_data: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None


class DashboardStats(CamelModel):
    total_products: int
    generated_this_month: int
    avg_seo_score: float
    api_credits: Optional[int] = None


# ----------------- Generation -----------------

class GenerateDescriptionRequest(CamelModel):
    product_name: str = Field(min_length=1)
    features: List[str]
    category: str = Field(min_length=1)
    keywords: List[str]
    tone: Tone
    length: Length
    product_id: Optional[int] = None


class GeneratedDescription(CamelModel):
    content: str
    seo_score: int
    word_count: int
    keyword_density: float
    suggested_keywords: List[str] = Field(default_factory=list)


class GenerateDescriptionResponse(CamelModel):
    description: DescriptionOut
    generated_description: GeneratedDescription
    remaining_credits: Optional[int] = None
    demo_mode: bool = False
    message: Optional[str] = None


class KeywordsRequest(CamelModel):
    product_name: str = Field(min_length=1)
    category: str = Field(min_length=1)


class KeywordsResponse(CamelModel):
    keywords: List[str]


class SeoScoreRequest(CamelModel):
    description: str = Field(min_length=1)
    keywords: List[str]


class SeoScoreResponse(CamelModel):
    seo_score: int


# ----------------- Billing -----------------

class SubscriptionIntentOut(CamelModel):
    subscription_id: str
    client_secret: Optional[str] = None


class MessageOut(BaseModel):
    message: str
