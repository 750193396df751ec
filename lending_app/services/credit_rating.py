"""
Heuristic credit rating used to backfill borrowers that have no rating.
Score starts at 500 and moves by fixed deltas for amount, purpose, term
and occupation, plus jitter in [-30, +30]; clamped to [300, 850].
Labels: >=750 Excellent, >=700 Very Good, >=650 Good, >=600 Fair,
>=550 Poor, below that Very Poor.

The jitter comes from an injectable random.Random so runs can be seeded.
"""
import random
from decimal import Decimal
from typing import NamedTuple, Optional, Union

from lending_app.models import CreditRating

BASE_SCORE = 500
MIN_SCORE = 300
MAX_SCORE = 850
JITTER = 30

RATING_THRESHOLDS = (
    (750, CreditRating.EXCELLENT),
    (700, CreditRating.VERY_GOOD),
    (650, CreditRating.GOOD),
    (600, CreditRating.FAIR),
    (550, CreditRating.POOR),
)

PURPOSE_DELTAS = (
    (('business', 'trade'), 80),
    (('education', 'school'), 60),
    (('emergency', 'medical'), 40),
    (('wedding', 'event'), -20),
)

OCCUPATION_DELTAS = (
    (('employed', 'government'), 60),
    (('business', 'self'), 30),
)


class RatingResult(NamedTuple):
    score: int
    rating: str


def _amount_delta(amount: float) -> int:
    if amount <= 100_000:
        return 100
    if amount <= 500_000:
        return 50
    if amount <= 1_000_000:
        return 0
    return -50


def _term_delta(term_months: int) -> int:
    if term_months <= 6:
        return 40
    if term_months <= 12:
        return 20
    if term_months <= 24:
        return 0
    return -30


def _keyword_delta(text: str, table) -> int:
    text = (text or '').lower()
    for keywords, delta in table:
        if any(k in text for k in keywords):
            return delta
    return 0


def score_applicant(
    requested_amount: Union[int, float, Decimal, None],
    purpose: str = '',
    term_months: Optional[int] = None,
    occupation: str = '',
    rng: Optional[random.Random] = None,
) -> int:
    rng = rng or random.Random()
    score = BASE_SCORE
    score += _amount_delta(float(requested_amount or 0))
    score += _keyword_delta(purpose, PURPOSE_DELTAS)
    score += _term_delta(term_months or 12)
    score += _keyword_delta(occupation, OCCUPATION_DELTAS)
    score += rng.randint(-JITTER, JITTER)
    return max(MIN_SCORE, min(MAX_SCORE, score))


def rating_for_score(score: int) -> str:
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return CreditRating.VERY_POOR


def rate_borrower(borrower, application=None, rng: Optional[random.Random] = None) -> RatingResult:
    """
    Score a borrower from their latest application, or from their
    profile alone when they have never applied.
    """
    if application is None:
        application = borrower.applications.order_by('-submitted_at', '-id').first()
    score = score_applicant(
        requested_amount=application.requested_amount if application else 0,
        purpose=application.purpose if application else '',
        term_months=application.term_months if application else None,
        occupation=borrower.occupation,
        rng=rng,
    )
    return RatingResult(score, rating_for_score(score))
