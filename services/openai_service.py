"""
OpenAI-backed generation of product descriptions, keyword suggestions and SEO scores.

Every call is a single chat-completions round trip asking for a JSON object; the reply is
decoded through a pydantic model that clamps the numeric fields instead of trusting them.
"""
from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from errors import GenerationError, QuotaExceededError
from schemas import GeneratedDescription, GenerateDescriptionRequest
from settings import OPENAI_API_KEY, OPENAI_MODEL

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = (
    "OpenAI API quota exceeded. Please add billing information to your OpenAI account at "
    "https://platform.openai.com/account/billing to continue generating descriptions."
)

LENGTH_MAP = {
    "short": "50-100 words",
    "medium": "100-200 words",
    "long": "200-300 words",
}

DEFAULT_SEO_SCORE = 5

COPYWRITER_SYSTEM = (
    "You are an expert eCommerce copywriter and SEO specialist. Generate high-converting, "
    "SEO-optimized product descriptions that drive sales and improve search rankings."
)
KEYWORDS_SYSTEM = (
    "You are an SEO keyword research expert. Provide relevant, high-traffic keywords that will "
    "help products rank better in search engines."
)
SEO_SYSTEM = (
    "You are an SEO analysis expert. Evaluate product descriptions for search engine "
    "optimization effectiveness."
)


# ----------------- decoding helpers -----------------

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _to_number(value: Any) -> float:
    """Finite float from a JSON scalar; ValueError for anything else (lists, objects, inf, nan)."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"not a number: {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def clamp_seo_score(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_SEO_SCORE
    return int(_clamp(_round_half_up(_to_number(value)), 1, 10))


def clamp_keyword_density(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(_clamp(_to_number(value), 0, 100))


class _ProviderModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class DescriptionPayload(_ProviderModel):
    content: str = ""
    seo_score: int = DEFAULT_SEO_SCORE
    word_count: int = 0
    keyword_density: float = 0.0
    suggested_keywords: List[str] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("seo_score", mode="before")
    @classmethod
    def _seo_score(cls, v: Any) -> int:
        return clamp_seo_score(v)

    @field_validator("word_count", mode="before")
    @classmethod
    def _word_count(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        return max(0, _round_half_up(_to_number(v)))

    @field_validator("keyword_density", mode="before")
    @classmethod
    def _keyword_density(cls, v: Any) -> float:
        return clamp_keyword_density(v)

    @field_validator("suggested_keywords", mode="before")
    @classmethod
    def _suggested(cls, v: Any) -> List[str]:
        if v is None:
            return []
        return [str(k) for k in v]


class KeywordsPayload(_ProviderModel):
    keywords: List[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords(cls, v: Any) -> List[str]:
        if v is None:
            return []
        return [str(k) for k in v]


class SeoScorePayload(_ProviderModel):
    score: int = DEFAULT_SEO_SCORE
    feedback: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return clamp_seo_score(v)


def is_quota_error(exc: BaseException) -> bool:
    return (
        isinstance(exc, openai.APIStatusError)
        and exc.status_code == 429
        and getattr(exc, "code", None) == "insufficient_quota"
    )


# ----------------- prompts -----------------

def build_description_prompt(request: GenerateDescriptionRequest) -> str:
    length = LENGTH_MAP[request.length]
    return f"""Generate an SEO-optimized product description for an eCommerce store with the following requirements:

Product Name: {request.product_name}
Category: {request.category}
Key Features: {", ".join(request.features)}
Target Keywords: {", ".join(request.keywords)}
Tone: {request.tone}
Length: {length}

Requirements:
1. Create a compelling, {request.tone} product description
2. Naturally incorporate the target keywords for SEO optimization
3. Highlight the key features and benefits
4. Use persuasive language that encourages purchase
5. Structure the content for readability
6. Ensure the description is {length} long

Please respond with a JSON object containing:
- content: the generated description
- seoScore: a score from 1-10 based on SEO optimization
- wordCount: number of words in the description
- keywordDensity: percentage of target keywords in the content
- suggestedKeywords: array of 3-5 additional relevant keywords

Make sure the description is unique, engaging, and optimized for search engines."""


def build_keywords_prompt(product_name: str, category: str) -> str:
    return f"""Suggest 10 relevant SEO keywords for a product named "{product_name}" in the {category} category.
Focus on keywords that potential customers would search for when looking for this type of product.
Include a mix of short-tail and long-tail keywords.

Respond with a JSON object containing:
- keywords: array of 10 relevant keywords"""


def build_seo_prompt(description: str, keywords: List[str]) -> str:
    return f"""Analyze the following product description for SEO optimization and provide a score from 1-10:

Description: "{description}"
Target Keywords: {", ".join(keywords)}

Evaluate based on:
- Keyword usage and density
- Content quality and readability
- Length and structure
- Persuasive language
- Search engine optimization best practices

Respond with a JSON object containing:
- score: number from 1-10
- feedback: brief explanation of the score"""


# ----------------- client -----------------

class DescriptionGenerator:
    """Thin wrapper around the OpenAI chat API. No retries, no backoff."""

    def __init__(self, client: Optional[Any] = None, api_key: Optional[str] = None, model: str = OPENAI_MODEL):
        self._client = client
        self.api_key = api_key
        self.model = model

    @property
    def client(self) -> Any:
        if self._client is None:
            # raises openai.OpenAIError when no key is configured anywhere
            self._client = OpenAI(api_key=self.api_key or None)
        return self._client

    def _chat_json(self, system: str, prompt: str, *, temperature: float, max_tokens: int) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or "{}"

    def generate_description(self, request: GenerateDescriptionRequest) -> GeneratedDescription:
        try:
            raw = self._chat_json(
                COPYWRITER_SYSTEM,
                build_description_prompt(request),
                temperature=0.7,
                max_tokens=1000,
            )
            payload = DescriptionPayload.model_validate_json(raw)
        except Exception as e:
            logger.error("[openai] generate_description failed: %s", e)
            if is_quota_error(e):
                raise QuotaExceededError(QUOTA_MESSAGE) from e
            raise GenerationError(f"Failed to generate product description: {e}") from e

        return GeneratedDescription(
            content=payload.content,
            seo_score=payload.seo_score,
            word_count=payload.word_count,
            keyword_density=payload.keyword_density,
            suggested_keywords=payload.suggested_keywords,
        )

    def suggest_keywords(self, product_name: str, category: str) -> List[str]:
        try:
            raw = self._chat_json(
                KEYWORDS_SYSTEM,
                build_keywords_prompt(product_name, category),
                temperature=0.5,
                max_tokens=300,
            )
            return KeywordsPayload.model_validate_json(raw).keywords
        except Exception as e:
            logger.error("[openai] suggest_keywords failed: %s", e)
            raise GenerationError(f"Failed to suggest keywords: {e}") from e

    def calculate_seo_score(self, description: str, keywords: List[str]) -> int:
        """Returns 5 when the provider call or the decode fails."""
        try:
            raw = self._chat_json(
                SEO_SYSTEM,
                build_seo_prompt(description, keywords),
                temperature=0.3,
                max_tokens=300,
            )
            return SeoScorePayload.model_validate_json(raw).score
        except Exception as e:
            logger.warning("[openai] calculate_seo_score failed, using default: %s", e)
            return DEFAULT_SEO_SCORE


_generator: Optional[DescriptionGenerator] = None


def get_generator() -> DescriptionGenerator:
    """FastAPI dependency; tests override it with a fake."""
    global _generator
    if _generator is None:
        _generator = DescriptionGenerator(api_key=OPENAI_API_KEY)
    return _generator
