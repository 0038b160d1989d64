"""Canned responses used when the live model cannot answer."""
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from models.topic import TopicCategory

logger = logging.getLogger(__name__)

INTRODUCTION = (
    "Hello! I'm Michael's AI assistant. I can help you learn about his 21+ years of software "
    "development experience, technical skills including Angular, React, Node.js, Python, and AWS, "
    "as well as his various projects. What would you like to know more about?"
)

UNAVAILABLE_MESSAGE = (
    "I'm temporarily unavailable. Please try again in a moment, or feel free to contact Michael "
    "directly for information about his experience and projects."
)

DEFAULT_RESPONSES = {
    TopicCategory.EXPERIENCE: (
        "Michael has over 21 years of experience in software development, specializing in full-stack "
        "development with technologies like Angular, React, Node.js, Python, and AWS. He has worked on "
        "various projects including refugee assistance systems, mobile applications, and cloud-based "
        "solutions."
    ),
    TopicCategory.SKILLS: (
        "Michael's technical skills include: Frontend (Angular, React, TypeScript), Backend (Node.js, "
        "Python, Java), Cloud (AWS Lambda, S3, DynamoDB, CloudFront), and DevOps (Docker, CI/CD, GitHub "
        "Actions). He's also experienced with databases like PostgreSQL, MongoDB, and DynamoDB."
    ),
    TopicCategory.PROJECTS: (
        "Some of Michael's notable projects include the Refugee Arrivals Data System, Service Locator "
        "Mobile App, Survey System for Refugees, and various web applications built with modern "
        "frameworks and deployed on AWS infrastructure."
    ),
    TopicCategory.EDUCATION: (
        "Michael has a strong Computer Science background and is a continuous learner who stays current "
        "with modern web technologies and best practices in software development."
    ),
    TopicCategory.CONTACT: (
        "Michael is available for software development opportunities and consulting. You can reach out "
        "to discuss potential projects or collaborations."
    ),
    TopicCategory.GREETING: "Hello! Thanks for your interest in Michael's background. " + INTRODUCTION,
    TopicCategory.CLOUD: (
        "Michael has extensive AWS experience including Lambda, S3, DynamoDB, CloudFront, API Gateway, "
        "and more. He's built and deployed numerous cloud-based applications and has expertise in cloud "
        "architecture and DevOps practices."
    ),
    TopicCategory.FRONTEND: (
        "Michael is highly skilled in modern frontend technologies including Angular, React, TypeScript, "
        "HTML/CSS, and Tailwind CSS. He has built responsive, user-friendly web applications and has "
        "experience with component-based architecture and state management."
    ),
    TopicCategory.BACKEND: (
        "Michael has strong backend development skills with Node.js, Python, Java, and REST API "
        "development. He's experienced in building scalable server-side applications, microservices, "
        "and API integrations."
    ),
    TopicCategory.HUMANITARIAN: (
        "Michael has worked on several humanitarian technology projects including the Refugee Arrivals "
        "Data System, Service Locator Mobile App, and Survey System for Refugees. These projects "
        "demonstrate his commitment to using technology for social good."
    ),
    TopicCategory.GENERAL: (
        "I'd be happy to tell you more about Michael's background! You can ask me about his experience, "
        "technical skills, projects, education, or how to contact him. What would you like to know?"
    ),
}


class ResponseCatalog:
    """Read-only mapping from every TopicCategory to its canned text."""

    def __init__(self, responses: Mapping[TopicCategory, str] = DEFAULT_RESPONSES):
        missing = [c.value for c in TopicCategory if not responses.get(c)]
        if missing:
            raise ValueError(f"Response catalog is missing entries for: {', '.join(missing)}")
        self._responses = MappingProxyType(dict(responses))

    def lookup(self, category: TopicCategory) -> str:
        return self._responses[category]

    @property
    def fallback(self) -> str:
        return self._responses[TopicCategory.GENERAL]

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ResponseCatalog":
        """
        Build a catalog from a JSON object of {category: text}.

        Categories absent from the file keep their default text; unknown keys
        are rejected.
        """
        with open(path, encoding="utf-8") as handle:
            overrides = json.load(handle)

        if not isinstance(overrides, dict):
            raise ValueError(f"Response catalog file {path} must contain a JSON object")

        responses = dict(DEFAULT_RESPONSES)
        for key, text in overrides.items():
            try:
                category = TopicCategory(key)
            except ValueError:
                raise ValueError(f"Unknown topic category in {path}: {key!r}") from None
            if not isinstance(text, str) or not text.strip():
                raise ValueError(f"Response for {key!r} in {path} must be a non-empty string")
            responses[category] = text

        logger.info(f"Loaded {len(overrides)} response overrides from {path}")
        return cls(responses)


def load_catalog(path: Optional[str] = None) -> ResponseCatalog:
    """Return the default catalog, or one with overrides from `path`."""
    if path:
        return ResponseCatalog.from_file(path)
    return ResponseCatalog()
