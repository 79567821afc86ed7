import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas import (
    DescriptionOut,
    GenerateDescriptionRequest,
    GenerateDescriptionResponse,
    KeywordsRequest,
    KeywordsResponse,
    SeoScoreRequest,
    SeoScoreResponse,
)
from services.description_workflow import generate_for_user
from services.openai_service import DescriptionGenerator, get_generator
from token_module import get_current_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generate", tags=["generate"])


@router.post("/description", response_model=GenerateDescriptionResponse)
def generate_description(
    payload: GenerateDescriptionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    generator: DescriptionGenerator = Depends(get_generator),
):
    outcome = generate_for_user(db, current_user, payload, generator)
    return GenerateDescriptionResponse(
        description=DescriptionOut.model_validate(outcome.description),
        generated_description=outcome.generated,
        remaining_credits=outcome.remaining_credits,
        demo_mode=outcome.demo_mode,
        message=outcome.message,
    )


@router.post("/keywords", response_model=KeywordsResponse)
def suggest_keywords(
    payload: KeywordsRequest,
    current_user: User = Depends(get_current_user),
    generator: DescriptionGenerator = Depends(get_generator),
):
    keywords = generator.suggest_keywords(payload.product_name, payload.category)
    log.info("[generate] %s keywords for user %s", len(keywords), current_user.id)
    return KeywordsResponse(keywords=keywords)


@router.post("/seo-score", response_model=SeoScoreResponse)
def seo_score(
    payload: SeoScoreRequest,
    current_user: User = Depends(get_current_user),
    generator: DescriptionGenerator = Depends(get_generator),
):
    return SeoScoreResponse(seo_score=generator.calculate_seo_score(payload.description, payload.keywords))
