"""
The generation request lifecycle: ownership check, credit reservation, the provider call,
persistence and analytics. Quota exhaustion is the only failure recovered here (demo mode).
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from errors import AccessDeniedError, GenerationError, NotFoundError, QuotaExceededError
from models import Description, User
from schemas import GeneratedDescription, GenerateDescriptionRequest
from services import crud

logger = logging.getLogger(__name__)

DEMO_KEYWORDS = ["premium", "quality", "innovative", "satisfaction guarantee", "fast shipping"]

DEMO_MESSAGE = (
    "Demo mode: OpenAI API quota exceeded. Add billing information at "
    "https://platform.openai.com/account/billing to generate real AI descriptions."
)


@dataclass
class GenerationOutcome:
    description: Description
    generated: GeneratedDescription
    remaining_credits: Optional[int]
    demo_mode: bool = False
    message: Optional[str] = None


def build_demo_description(request: GenerateDescriptionRequest) -> GeneratedDescription:
    content = (
        f"Transform your product experience with this premium {request.product_name}. "
        f"Crafted with exceptional attention to detail, this {request.category.lower()} combines "
        f"innovative design with superior functionality. Key features include "
        f"{', '.join(request.features)}, making it the perfect choice for discerning customers. "
        f"Available now with fast shipping and our satisfaction guarantee. Order today and "
        f"discover why thousands of customers trust our quality and service."
    )
    return GeneratedDescription(
        content=content,
        seo_score=8,
        word_count=65,
        keyword_density=12.5,
        suggested_keywords=list(DEMO_KEYWORDS),
    )


def _check_product(db: Session, user: User, product_id: Optional[int]) -> None:
    if product_id is None:
        return
    product = crud.get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    if product.user_id != user.id:
        raise AccessDeniedError()


def _persist(db: Session, user: User, request: GenerateDescriptionRequest,
             generated: GeneratedDescription, demo_mode: bool) -> Description:
    product_id = request.product_id
    if product_id is not None:
        crud.deactivate_product_descriptions(db, product_id)

    description = crud.create_description(
        db,
        product_id=product_id,
        user_id=user.id,
        content=generated.content,
        seo_score=generated.seo_score,
        word_count=generated.word_count,
        keyword_density=generated.keyword_density,
        tone=request.tone,
        length=request.length,
        is_active=True,
    )

    if product_id is not None:
        product = crud.get_product(db, product_id)
        crud.update_product(db, product, {
            "generated_description": generated.content,
            "seo_score": generated.seo_score,
        })

    event_data = {
        "seoScore": generated.seo_score,
        "wordCount": generated.word_count,
        "tone": request.tone,
        "length": request.length,
    }
    if demo_mode:
        event_data["demoMode"] = True
    crud.create_analytics(
        db,
        user_id=user.id,
        event_type="description_generated",
        event_data=event_data,
        product_id=product_id,
        description_id=description.id,
    )
    return description


def generate_for_user(db: Session, user: User, request: GenerateDescriptionRequest, generator) -> GenerationOutcome:
    _check_product(db, user, request.product_id)

    # raises InsufficientCreditsError before the provider is touched
    remaining = crud.reserve_credit(db, user)

    demo_mode = False
    try:
        generated = generator.generate_description(request)
    except QuotaExceededError as e:
        logger.warning("[generate] quota exhausted for user %s, serving demo description: %s", user.id, e)
        generated = build_demo_description(request)
        demo_mode = True
    except GenerationError:
        crud.refund_credit(db, user)
        logger.error("[generate] generation failed for user %s, credit refunded", user.id)
        raise

    try:
        description = _persist(db, user, request, generated, demo_mode=demo_mode)
    except Exception:
        db.rollback()
        crud.refund_credit(db, user)
        logger.error("[generate] saving the description failed for user %s, credit refunded", user.id)
        raise

    logger.info("[generate] user=%s description=%s seo=%s demo=%s",
                user.id, description.id, generated.seo_score, demo_mode)
    return GenerationOutcome(
        description=description,
        generated=generated,
        remaining_credits=remaining,
        demo_mode=demo_mode,
        message=DEMO_MESSAGE if demo_mode else None,
    )
