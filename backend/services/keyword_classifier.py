"""
Keyword Classifier for the portfolio chat assistant.

Maps a free-text chat message to a TopicCategory with an ordered list of
keyword rules. Matching is plain substring search over the lowercased message
and the first matching rule wins; there is no scoring.
"""

from dataclasses import dataclass
import logging
from typing import Optional, Sequence, Tuple

from models.topic import TopicCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    """A topic and the keywords that select it."""
    category: TopicCategory
    keywords: Tuple[str, ...]

    def first_match(self, text_lower: str) -> Optional[str]:
        for keyword in self.keywords:
            if keyword in text_lower:
                return keyword
        return None


@dataclass(frozen=True)
class Classification:
    """
    Result of keyword classification.

    Attributes:
        category: Selected topic
        matched_keyword: Keyword that triggered the rule, None for the default
        rule_index: Position of the winning rule, -1 for the default
    """
    category: TopicCategory
    matched_keyword: Optional[str] = None
    rule_index: int = -1

    @property
    def is_default(self) -> bool:
        return self.rule_index < 0


# Order is part of the contract: "work" is listed under both experience and
# projects, and experience wins because it comes first.
DEFAULT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(TopicCategory.EXPERIENCE, ("experience", "background", "work", "career")),
    KeywordRule(TopicCategory.SKILLS, ("skill", "technology", "tech", "programming", "language")),
    KeywordRule(TopicCategory.PROJECTS, ("project", "portfolio", "work", "built")),
    KeywordRule(TopicCategory.EDUCATION, ("education", "learning", "school", "university")),
    KeywordRule(TopicCategory.CONTACT, ("contact", "reach", "hire", "available")),
    KeywordRule(TopicCategory.GREETING, ("hello", "hi", "hey")),
    KeywordRule(TopicCategory.CLOUD, ("aws", "cloud")),
    KeywordRule(TopicCategory.FRONTEND, ("angular", "react", "frontend")),
    KeywordRule(TopicCategory.BACKEND, ("node", "javascript", "backend")),
    KeywordRule(TopicCategory.HUMANITARIAN, ("refugee", "humanitarian")),
)


class KeywordClassifier:
    """
    Deterministic, stateless first-match-wins topic classifier.

    The rule table is fixed at construction time and never mutated.
    """

    def __init__(self, rules: Sequence[KeywordRule] = DEFAULT_RULES):
        self.rules: Tuple[KeywordRule, ...] = tuple(rules)

    def classify(self, text: str) -> Classification:
        """
        Classify a chat message.

        Args:
            text: Raw user message (any length, may be empty)

        Returns:
            Classification for the first matching rule, or GENERAL
        """
        text_lower = (text or "").lower()

        for index, rule in enumerate(self.rules):
            keyword = rule.first_match(text_lower)
            if keyword is not None:
                logger.debug(f"Classification: {rule.category.value} (keyword '{keyword}') - {text[:50]}")
                return Classification(
                    category=rule.category,
                    matched_keyword=keyword,
                    rule_index=index,
                )

        logger.debug(f"Classification: {TopicCategory.GENERAL.value} (default) - {(text or '')[:50]}")
        return Classification(category=TopicCategory.GENERAL)
