"""Collaborator interfaces for ContextSmith."""

from .llm_provider import LLMProvider, LLMResponse, Message, Role
from .project_descriptor import ProjectDescriptor, ProjectSignature
from .search_backend import SearchBackend

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "ProjectDescriptor",
    "ProjectSignature",
    "Role",
    "SearchBackend",
]
