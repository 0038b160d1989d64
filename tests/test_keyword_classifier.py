"""
Unit tests for KeywordClassifier.

Tests first-match-wins ordering and the general default.
"""

import sys
sys.path.insert(0, 'backend')

import pytest
from models.topic import TopicCategory
from services.keyword_classifier import DEFAULT_RULES, Classification, KeywordClassifier, KeywordRule


class TestKeywordClassifier:
    """Test suite for KeywordClassifier class."""

    @pytest.fixture
    def classifier(self):
        """Create a KeywordClassifier with the default rules."""
        return KeywordClassifier()

    @pytest.mark.parametrize("message, expected", [
        ("What is his experience?", TopicCategory.EXPERIENCE),
        ("Tell me about your skills", TopicCategory.SKILLS),
        ("Show me a project", TopicCategory.PROJECTS),
        ("Where did he go to university", TopicCategory.EDUCATION),
        ("How can I contact Michael", TopicCategory.CONTACT),
        ("hello", TopicCategory.GREETING),
        ("AWS", TopicCategory.CLOUD),
        ("angular", TopicCategory.FRONTEND),
        ("node", TopicCategory.BACKEND),
        ("refugee", TopicCategory.HUMANITARIAN),
    ])
    def test_each_topic_is_reachable(self, classifier, message, expected):
        """Test that every rule's keyword selects its topic."""
        assert classifier.classify(message).category == expected

    def test_skills_scenario(self, classifier):
        """Test the 'Tell me about your skills' scenario."""
        result = classifier.classify("Tell me about your skills")
        assert result.category == TopicCategory.SKILLS
        assert result.matched_keyword == "skill"
        assert result.rule_index == 1

    def test_case_insensitive(self, classifier):
        """Test that matching ignores case."""
        assert classifier.classify("EXPERIENCE").category == TopicCategory.EXPERIENCE

    def test_substring_match(self, classifier):
        """Test that keywords match inside longer words."""
        assert classifier.classify("He is a skilled engineer").category == TopicCategory.SKILLS

    def test_first_match_wins_over_later_rules(self, classifier):
        """Test that experience beats skills when both are present."""
        result = classifier.classify("What skills came from his experience?")
        assert result.category == TopicCategory.EXPERIENCE

    def test_overlapping_keyword_resolves_to_first_rule(self, classifier):
        """Test that 'work' belongs to experience, not projects."""
        assert classifier.classify("show me some work").category == TopicCategory.EXPERIENCE

    def test_earlier_rule_shadows_greeting(self, classifier):
        """Test that 'this' contains 'hi' but a skills keyword comes first."""
        assert classifier.classify("Is this tech stack modern").category == TopicCategory.SKILLS

    def test_no_match_defaults_to_general(self, classifier):
        """Test that unmatched input falls back to general."""
        result = classifier.classify("What's your favourite colour?")
        assert result.category == TopicCategory.GENERAL
        assert result.is_default
        assert result.matched_keyword is None

    def test_empty_input_defaults_to_general(self, classifier):
        """Test that empty input is classified without error."""
        assert classifier.classify("").category == TopicCategory.GENERAL

    def test_classification_is_idempotent(self, classifier):
        """Test that classifying the same text twice gives the same answer."""
        message = "Tell me about the refugee projects"
        assert classifier.classify(message) == classifier.classify(message)

    def test_custom_rules_respect_order(self):
        """Test that a custom rule table is used in its given order."""
        classifier = KeywordClassifier([
            KeywordRule(TopicCategory.CLOUD, ("lambda",)),
            KeywordRule(TopicCategory.BACKEND, ("lambda", "api")),
        ])
        assert classifier.classify("lambda api").category == TopicCategory.CLOUD
        assert classifier.classify("api").category == TopicCategory.BACKEND

    def test_default_rules_are_immutable(self, classifier):
        """Test that the rule table is a tuple of frozen rules."""
        assert isinstance(classifier.rules, tuple)
        assert classifier.rules == DEFAULT_RULES
        with pytest.raises(Exception):
            classifier.rules[0].keywords = ("changed",)

    def test_classification_dataclass_defaults(self):
        """Test the default Classification is the general fallback."""
        result = Classification(category=TopicCategory.GENERAL)
        assert result.is_default
