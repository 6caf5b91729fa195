# =========================================================
# REORDER ADVISOR
#
# Candidates: active products with quantity <= 2 x min_stock_level.
# Every candidate always gets a rule-based suggestion. When a
# remote scorer (Gemini) is configured its answer replaces the
# rule-based list, unless the call fails or the answer does not
# validate, in which case the rule-based list is returned.
# =========================================================

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import List

import requests
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from stockroom.core.config import settings
from stockroom.core.dates import months_ago
from stockroom.core.errors import ExternalServiceFailure
from stockroom.models import Product, Transaction
from stockroom.schemas.report import ReorderSuggestion

logger = logging.getLogger("stockroom")

_SUGGESTION_LIST = TypeAdapter(List[ReorderSuggestion])

URGENT_REASON = "Stock below minimum level - urgent reorder needed"
LOW_STOCK_REASON = "Low stock level detected"


@dataclass
class ProductSignal:
    product_id: int
    name: str
    sku: str
    current_stock: int
    min_stock_level: int
    avg_monthly_sales: float
    total_sold: int
    supplier: str
    price: float


class ReorderScorer(ABC):
    @abstractmethod
    def score(self, candidates: List[ProductSignal]) -> list:
        """Return raw suggestions: dicts with product_name, current_stock,
        suggested_quantity and reason."""


def rule_based_suggestion(signal: ProductSignal) -> ReorderSuggestion:
    suggested_quantity = max(
        signal.min_stock_level * 2,
        math.ceil(signal.avg_monthly_sales * 2),
    )

    if signal.current_stock <= signal.min_stock_level:
        reason = URGENT_REASON
    elif signal.avg_monthly_sales > 0:
        reason = f"Based on {signal.avg_monthly_sales:.1f} avg monthly sales"
    else:
        reason = LOW_STOCK_REASON

    return ReorderSuggestion(
        product_name=signal.name,
        current_stock=signal.current_stock,
        suggested_quantity=suggested_quantity,
        reason=reason,
    )


class RuleBasedScorer(ReorderScorer):
    def score(self, candidates: List[ProductSignal]) -> list:
        return [rule_based_suggestion(c).model_dump() for c in candidates]


def parse_suggestions_text(text: str) -> list:
    cleaned = re.sub(r"```(?:json)?", "", text).strip()

    try:
        parsed = json.loads(cleaned)
    except ValueError as exc:
        raise ExternalServiceFailure("Reorder scorer returned invalid JSON") from exc

    if not isinstance(parsed, list):
        raise ExternalServiceFailure("Reorder scorer did not return a list")

    return parsed


class GeminiScorer(ReorderScorer):
    def __init__(self, api_key: str, model: str, base_url: str, timeout: float):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def build_prompt(self, candidates: List[ProductSignal]) -> str:
        product_data = [asdict(c) for c in candidates]
        return f"""
As an inventory management AI, analyze the following product data and provide reorder suggestions.
Consider current stock levels, minimum stock requirements, average monthly sales, and seasonal patterns.

Product Data:
{json.dumps(product_data, indent=2)}

For each product that needs reordering, provide:
1. Product name
2. Current stock level
3. Suggested reorder quantity
4. Brief reason for the suggestion (max 50 words)

Focus on products with stock levels approaching or below minimum thresholds, and consider sales velocity.
Respond with JSON only: an array of objects with properties
product_name, current_stock, suggested_quantity, reason.
"""

    def score(self, candidates: List[ProductSignal]) -> list:
        url = f"{self.base_url}/{self.model}:generateContent"

        payload = {
            "contents": [
                {"parts": [{"text": self.build_prompt(candidates)}]}
            ],
        }

        try:
            response = requests.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ExternalServiceFailure(f"Gemini request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ExternalServiceFailure(f"Gemini returned HTTP {response.status_code}")

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceFailure("Unexpected Gemini response shape") from exc

        if not isinstance(text, str):
            raise ExternalServiceFailure("Unexpected Gemini response shape")

        return parse_suggestions_text(text)


def get_reorder_scorer() -> ReorderScorer | None:
    if not settings.GEMINI_API_KEY:
        return None

    return GeminiScorer(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        base_url=settings.GEMINI_API_URL,
        timeout=settings.REORDER_SCORER_TIMEOUT_SECONDS,
    )


def gather_reorder_candidates(db: Session, lookback_months: int) -> List[ProductSignal]:
    products = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(
            Product.is_active.is_(True),
            Product.quantity <= Product.min_stock_level * 2,
        )
        .order_by(Product.quantity.asc(), Product.id.asc())
        .all()
    )

    if not products:
        return []

    since = months_ago(datetime.now(timezone.utc), lookback_months)

    sold_rows = (
        db.query(
            Transaction.product_id,
            func.coalesce(func.sum(Transaction.quantity), 0).label("total_sold"),
        )
        .filter(
            Transaction.type == "sale",
            Transaction.product_id.in_([p.id for p in products]),
            Transaction.created_at >= since,
        )
        .group_by(Transaction.product_id)
        .all()
    )
    sold = {row.product_id: int(row.total_sold) for row in sold_rows}

    candidates = []
    for product in products:
        total_sold = sold.get(product.id, 0)
        candidates.append(
            ProductSignal(
                product_id=product.id,
                name=product.name,
                sku=product.sku,
                current_stock=product.quantity,
                min_stock_level=product.min_stock_level,
                avg_monthly_sales=total_sold / lookback_months,
                total_sold=total_sold,
                supplier=product.supplier.name if product.supplier else "Unknown",
                price=float(product.price),
            )
        )

    return candidates


def compute_reorder_suggestions(
    db: Session,
    scorer: ReorderScorer | None = None,
    lookback_months: int | None = None,
) -> List[ReorderSuggestion]:
    months = lookback_months or settings.REORDER_LOOKBACK_MONTHS
    candidates = gather_reorder_candidates(db, months)

    if not candidates:
        return []

    fallback = [rule_based_suggestion(c) for c in candidates]

    if scorer is None:
        return fallback

    try:
        return _SUGGESTION_LIST.validate_python(scorer.score(candidates))
    except ExternalServiceFailure as exc:
        logger.warning(f"Reorder scorer failed, using rule-based suggestions: {exc.message}")
    except ValidationError as exc:
        logger.warning(
            f"Reorder scorer output rejected ({exc.error_count()} errors), "
            "using rule-based suggestions"
        )
    except Exception:
        logger.warning("Reorder scorer raised, using rule-based suggestions", exc_info=True)

    return fallback
