"""Keyword heuristic meal scoring with health-profile personalization."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar, Protocol

from yoga_of_eating.domain.analysis import MealAnalysis
from yoga_of_eating.domain.health import RiskLevel, UserHealthProfile
from yoga_of_eating.domain.meals import DEFAULT_HEALTH_SCORE
from yoga_of_eating.services.health_profile import HealthProfileService
from yoga_of_eating.services.meal_analysis import MealAnalysisService

NEUTRAL_SCORE = 0.5
KEYWORD_BONUS = 0.1
KEYWORD_PENALTY = 0.1

HEALTHY_KEYWORDS = (
    "salad",
    "fruit",
    "avocado",
    "smoothie",
    "vegetable",
    "water",
    "organic",
    "green",
)
UNHEALTHY_KEYWORDS = (
    "burger",
    "pizza",
    "fries",
    "coke",
    "soda",
    "sugar",
    "fried",
    "cheese",
)
FRIED_FOOD_KEYWORDS = ("fried", "deep-fried", "samosa", "pakora", "vada")

_FRIED_PENALTY = {RiskLevel.HIGH: 0.15, RiskLevel.MEDIUM: 0.08, RiskLevel.LOW: 0.0}
_HEALTHY_BONUS = {RiskLevel.HIGH: 0.1, RiskLevel.MEDIUM: 0.05, RiskLevel.LOW: 0.0}


def base_score(description: str) -> float:
    """Unclamped keyword score around the neutral 0.5."""
    text = description.lower()
    score = NEUTRAL_SCORE
    for word in HEALTHY_KEYWORDS:
        if word in text:
            score += KEYWORD_BONUS
    for word in UNHEALTHY_KEYWORDS:
        if word in text:
            score -= KEYWORD_PENALTY
    return score


def personalized_score(
    description: str,
    profile: UserHealthProfile | None,
    personalization_enabled: bool = True,
) -> float:
    """Score a description in [0, 1], adjusted for the user's profile."""
    score = base_score(description)
    if profile is None or not personalization_enabled:
        return _clamp(score)

    deviation = score - NEUTRAL_SCORE
    score = NEUTRAL_SCORE + deviation * profile.sensitivity_multiplier

    text = description.lower()
    if any(word in text for word in FRIED_FOOD_KEYWORDS):
        score -= _FRIED_PENALTY[profile.risk_level]
    if any(word in text for word in HEALTHY_KEYWORDS):
        score += _HEALTHY_BONUS[profile.risk_level]
    return _clamp(score)


def aggregate_score(
    items: Sequence[str],
    profile: UserHealthProfile | None,
    personalization_enabled: bool = True,
) -> float:
    """Mean personalized score over items; 0.5 when there are none."""
    if not items:
        return DEFAULT_HEALTH_SCORE
    scores = [
        personalized_score(item, profile, personalization_enabled) for item in items
    ]
    return sum(scores) / len(scores)


@dataclass(frozen=True)
class ScoringContext:
    """Profile inputs for one scoring pass, read from the store once."""

    profile: UserHealthProfile | None
    personalization_enabled: bool = True

    @property
    def sensitivity(self) -> float:
        """Profile sensitivity, or 1.0 without a profile."""
        return self.profile.sensitivity_multiplier if self.profile else 1.0


class MealScorer(Protocol):
    """Scoring capability consumed by the session.

    ``supports_refinement`` tells the session whether ``refine`` may be
    awaited for a slower, remote score after the local one is applied.
    Methods taking a ``context`` load a fresh one when it is omitted.
    """

    supports_refinement: bool

    def load_context(self) -> ScoringContext:
        """Read the stored profile and personalization toggle."""

    def score(self, description: str, context: ScoringContext | None = None) -> float:
        """Return a local score for one description."""

    def score_items(
        self, items: Sequence[str], context: ScoringContext | None = None
    ) -> float:
        """Return the local aggregate score for a meal's items."""

    def sensitivity(self, context: ScoringContext | None = None) -> float:
        """Return the multiplier used for mood transitions."""

    async def refine(self, description: str) -> MealAnalysis:
        """Return a refined analysis for a description."""


@dataclass
class HeuristicMealScorer(MealScorer):
    """Local keyword scorer personalized from the stored health profile."""

    profile_service: HealthProfileService
    supports_refinement: ClassVar[bool] = False

    def load_context(self) -> ScoringContext:
        return ScoringContext(
            profile=self.profile_service.get_profile(),
            personalization_enabled=self.profile_service.personalization_enabled(),
        )

    def score(self, description: str, context: ScoringContext | None = None) -> float:
        """Score one description with the current profile."""
        context = context or self.load_context()
        return personalized_score(
            description, context.profile, context.personalization_enabled
        )

    def score_items(
        self, items: Sequence[str], context: ScoringContext | None = None
    ) -> float:
        """Score all items of a meal with the current profile."""
        context = context or self.load_context()
        return aggregate_score(items, context.profile, context.personalization_enabled)

    def sensitivity(self, context: ScoringContext | None = None) -> float:
        return (context or self.load_context()).sensitivity

    async def refine(self, description: str) -> MealAnalysis:
        raise NotImplementedError("Heuristic scorer has no remote refinement")


@dataclass
class RefiningMealScorer(MealScorer):
    """Heuristic scorer whose results can be refined by the remote analyzer."""

    heuristic: HeuristicMealScorer
    analysis_service: MealAnalysisService
    supports_refinement: ClassVar[bool] = True

    def load_context(self) -> ScoringContext:
        return self.heuristic.load_context()

    def score(self, description: str, context: ScoringContext | None = None) -> float:
        """Immediate local score while the remote analysis is pending."""
        return self.heuristic.score(description, context)

    def score_items(
        self, items: Sequence[str], context: ScoringContext | None = None
    ) -> float:
        """Immediate local aggregate while the remote analysis is pending."""
        return self.heuristic.score_items(items, context)

    def sensitivity(self, context: ScoringContext | None = None) -> float:
        return self.heuristic.sensitivity(context)

    async def refine(self, description: str) -> MealAnalysis:
        """Ask the remote analyzer for a score."""
        return await self.analysis_service.analyze(description)


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))
