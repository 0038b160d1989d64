"""Topic categories understood by the keyword fallback."""
from enum import Enum


class TopicCategory(str, Enum):
    EXPERIENCE = "experience"
    SKILLS = "skills"
    PROJECTS = "projects"
    EDUCATION = "education"
    CONTACT = "contact"
    GREETING = "greeting"
    CLOUD = "cloud"
    FRONTEND = "frontend"
    BACKEND = "backend"
    HUMANITARIAN = "humanitarian"
    GENERAL = "general"
