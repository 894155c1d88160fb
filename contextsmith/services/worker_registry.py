"""Catalog of specialized workers and the task-type recommendation table.

A registry is built once and injected wherever it is needed. It is immutable
after construction, so sharing one instance between concurrent pipeline runs
is safe.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class WorkerCategory(str, Enum):
    STACK_DETECTION = "stack_detection"
    TASK_CLASSIFICATION = "task_classification"
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATA = "data"
    SECURITY = "security"
    TESTING = "testing"
    INFRASTRUCTURE = "infrastructure"
    ERROR_ANALYSIS = "error_analysis"
    DOCUMENTATION = "documentation"


class WorkerPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class WorkerSpec:
    """A specialized search worker: prompt template plus scheduling metadata.

    ``dependencies`` name workers that must complete before this one when both
    are scheduled together. ``provides_context`` lists the facts the worker
    contributes (informational).
    """

    key: str
    description: str
    template: str
    category: WorkerCategory
    priority: WorkerPriority
    dependencies: frozenset[str] = field(default_factory=frozenset)
    provides_context: frozenset[str] = field(default_factory=frozenset)


# Task types map to the workers worth running first for them
RECOMMENDATIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "feature": ("frontend_scanner", "backend_scanner", "data_scanner", "api_scanner"),
        "bugfix": ("error_analyzer", "test_scanner", "frontend_scanner", "backend_scanner"),
        "refactor": ("refactor_advisor", "dependency_analyzer", "performance_analyzer"),
        "explanation": ("documentation_scanner", "frontend_scanner", "data_scanner"),
        "security": ("security_auditor", "auth_scanner", "config_scanner"),
    }
)
DEFAULT_RECOMMENDATION: tuple[str, ...] = (
    "stack_detector",
    "frontend_scanner",
    "backend_scanner",
)


class WorkerSpecRegistry:
    """Read-only lookup of WorkerSpec by key."""

    def __init__(
        self,
        specs: Iterable[WorkerSpec],
        recommendations: Mapping[str, Iterable[str]] | None = None,
        default_recommendation: Iterable[str] = DEFAULT_RECOMMENDATION,
    ):
        by_key: dict[str, WorkerSpec] = {}
        for spec in specs:
            if spec.key in by_key:
                raise ValueError(f"Duplicate worker key: {spec.key}")
            by_key[spec.key] = spec

        self._specs: Mapping[str, WorkerSpec] = MappingProxyType(by_key)
        table = RECOMMENDATIONS if recommendations is None else recommendations
        self._recommendations: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {task_type: tuple(keys) for task_type, keys in table.items()}
        )
        self._default_recommendation = tuple(default_recommendation)

    @classmethod
    def default(cls) -> "WorkerSpecRegistry":
        """Registry holding the built-in catalog of fifteen workers."""
        return cls(DEFAULT_WORKERS)

    def get(self, key: str) -> WorkerSpec | None:
        return self._specs.get(key)

    def all(self) -> list[WorkerSpec]:
        """All specs sorted by key."""
        return [self._specs[k] for k in sorted(self._specs)]

    def keys(self) -> list[str]:
        return sorted(self._specs)

    def by_category(self, category: WorkerCategory) -> list[WorkerSpec]:
        return [s for s in self.all() if s.category == category]

    def by_priority(self, priority: WorkerPriority) -> list[WorkerSpec]:
        return [s for s in self.all() if s.priority == priority]

    def recommended_for(self, task_type: str) -> list[str]:
        """Worker keys recommended for a task type; unknown types get the default set."""
        return list(
            self._recommendations.get(task_type.strip().lower(), self._default_recommendation)
        )

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[WorkerSpec]:
        return iter(self.all())


def _spec(
    key: str,
    description: str,
    template: str,
    category: WorkerCategory,
    priority: WorkerPriority,
    dependencies: tuple[str, ...] = (),
    provides: tuple[str, ...] = (),
) -> WorkerSpec:
    return WorkerSpec(
        key=key,
        description=description,
        template=template.strip(),
        category=category,
        priority=priority,
        dependencies=frozenset(dependencies),
        provides_context=frozenset(provides),
    )


_SNIPPET_REPLY = (
    "Return a JSON array. Each element is an object with: content (the code), "
    "file_path, language, kind (component, function, type, schema, constant, ...) "
    "and a short description."
)

DEFAULT_WORKERS: tuple[WorkerSpec, ...] = (
    _spec(
        "stack_detector",
        "stack detection specialist that reads the file tree and configuration files "
        "to identify language, framework and architecture",
        """
You are a Stack Detection Specialist. Analyze this project layout:
Project files: {file_list}
Package managers: {package_managers}
Key config files: {config_files}
Project: {project_info}

Respond with JSON:
{"language": "typescript|rust|python|...", "framework": "nextjs|react|django|...",
 "architecture": "monolith|microservices|serverless|...", "features": ["ssr", "api", "auth", ...]}
""",
        WorkerCategory.STACK_DETECTION,
        WorkerPriority.CRITICAL,
        provides=("language", "framework", "architecture"),
    ),
    _spec(
        "task_classifier",
        "task classification specialist that labels a request as feature, bugfix, "
        "refactor, explanation or documentation work",
        """
You are a Task Classification Specialist. Classify this request:

User request: {user_prompt}
Project stack: {project_stack}

Respond with JSON:
{"task_type": "feature|bugfix|refactor|explanation|documentation|security",
 "complexity": "simple|medium|complex",
 "domains": ["ui", "backend", "database", "auth", "api", "testing"],
 "urgency": "low|medium|high"}
""",
        WorkerCategory.TASK_CLASSIFICATION,
        WorkerPriority.HIGH,
        provides=("task_type", "complexity", "domains"),
    ),
    _spec(
        "frontend_scanner",
        "frontend specialist that finds UI components, props, styling systems and "
        "frontend patterns",
        f"""
You are a Frontend Specialist. Find the frontend code relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- UI components (Button, Input, Form, ...)
- Styling systems (CSS modules, Tailwind, styled-components)
- State management patterns
- Props interfaces and types

{_SNIPPET_REPLY}
""",
        WorkerCategory.FRONTEND,
        WorkerPriority.HIGH,
        dependencies=("stack_detector",),
        provides=("ui_components", "styling_system"),
    ),
    _spec(
        "backend_scanner",
        "backend specialist that finds API routes, controllers, database models and "
        "service logic",
        f"""
You are a Backend Specialist. Find the backend code relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- API routes and controllers
- Database models and schemas
- Business logic functions
- Middleware and authentication hooks

{_SNIPPET_REPLY}
""",
        WorkerCategory.BACKEND,
        WorkerPriority.HIGH,
        dependencies=("stack_detector",),
        provides=("api_routes", "database_models"),
    ),
    _spec(
        "data_scanner",
        "data specialist that finds type definitions, interfaces, database schemas and "
        "data models",
        f"""
You are a Data Specialist. Find the data structures and types relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- Interfaces, type aliases and enums
- Database schemas and models
- Validation schemas (Zod, Joi, pydantic, ...)
- Data transformation functions

{_SNIPPET_REPLY}
""",
        WorkerCategory.DATA,
        WorkerPriority.MEDIUM,
        dependencies=("stack_detector",),
        provides=("type_definitions", "validation_schemas"),
    ),
    _spec(
        "auth_scanner",
        "authentication specialist that finds login, session, token and authorization "
        "code",
        f"""
You are an Authentication Specialist. Find the security-related code relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- Login and logout functions
- JWT creation and validation
- Session management
- Authorization middleware
- Password hashing and verification

{_SNIPPET_REPLY}
""",
        WorkerCategory.SECURITY,
        WorkerPriority.MEDIUM,
        provides=("auth_patterns", "security_middleware"),
    ),
    _spec(
        "api_scanner",
        "API specialist that finds endpoints, HTTP handlers and external service "
        "integrations",
        f"""
You are an API Specialist. Find the API code relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- REST endpoints
- GraphQL resolvers
- External API integrations and HTTP clients
- Request and response handling

{_SNIPPET_REPLY}
""",
        WorkerCategory.BACKEND,
        WorkerPriority.MEDIUM,
        dependencies=("stack_detector",),
        provides=("api_endpoints", "external_integrations"),
    ),
    _spec(
        "test_scanner",
        "testing specialist that finds unit tests, integration tests and test utilities",
        f"""
You are a Testing Specialist. Find the test code relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- Unit tests covering the affected components
- Integration tests
- Test utilities, fixtures and mocks
- Test configuration files

{_SNIPPET_REPLY}
""",
        WorkerCategory.TESTING,
        WorkerPriority.LOW,
        dependencies=("frontend_scanner", "backend_scanner"),
        provides=("test_files", "test_utilities"),
    ),
    _spec(
        "error_analyzer",
        "error analysis specialist that traces error messages back to the code that "
        "raises them",
        """
You are an Error Analysis Specialist. Analyze this error and find the related code.

Task: {user_prompt}
Error: {error_message}
Project: {project_info}

Look for:
- Files mentioned in the error
- Similar error handling patterns
- Logging and error reporting code
- Exception handling blocks

Respond with JSON: an array of relevant code locations, each with content, file_path,
kind and description.
""",
        WorkerCategory.ERROR_ANALYSIS,
        WorkerPriority.HIGH,
        provides=("error_locations", "error_patterns"),
    ),
    _spec(
        "config_scanner",
        "configuration specialist that finds config files, environment variables and "
        "deployment settings",
        f"""
You are a Configuration Specialist. Find the configuration relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- Environment variable usage
- Configuration files (JSON, YAML, TOML)
- Container definitions
- Build and deployment scripts

{_SNIPPET_REPLY}
""",
        WorkerCategory.INFRASTRUCTURE,
        WorkerPriority.LOW,
        provides=("config_files", "environment_vars"),
    ),
    _spec(
        "dependency_analyzer",
        "dependency analysis specialist that maps import relationships and dependency "
        "chains",
        """
You are a Dependency Analysis Specialist. Map the dependencies involved in this task.

Task: {user_prompt}
Starting file: {file_path}
Project: {project_info}

Trace:
- Direct imports of the target code
- Code that imports the target
- Transitive dependencies
- Circular dependency warnings

Respond with JSON: an array of the relevant modules, each with content, file_path,
kind and description.
""",
        WorkerCategory.INFRASTRUCTURE,
        WorkerPriority.MEDIUM,
        dependencies=("frontend_scanner", "backend_scanner"),
        provides=("dependency_graph", "import_chains"),
    ),
    _spec(
        "security_auditor",
        "security auditor that reviews code for vulnerabilities and unsafe "
        "authentication patterns",
        """
You are a Security Auditor. Review the code involved in this task.

Task: {user_prompt}
Project: {project_info}

Check for:
- Input validation and sanitization
- Injection vulnerabilities
- Cross-site scripting protection
- Authentication bypasses
- Password handling

Respond with JSON: an array of findings, each with content, file_path, kind and
description.
""",
        WorkerCategory.SECURITY,
        WorkerPriority.MEDIUM,
        dependencies=("auth_scanner",),
        provides=("security_issues", "security_recommendations"),
    ),
    _spec(
        "performance_analyzer",
        "performance analyst that looks for bottlenecks and optimization opportunities",
        """
You are a Performance Analyst. Review the code involved in this task.

Task: {user_prompt}
Project: {project_info}

Analyze:
- Database query efficiency
- Memory usage patterns
- CPU-intensive operations
- Caching opportunities

Respond with JSON: an array of findings, each with content, file_path, kind and
description.
""",
        WorkerCategory.INFRASTRUCTURE,
        WorkerPriority.LOW,
        dependencies=("backend_scanner",),
        provides=("performance_bottlenecks", "optimization_suggestions"),
    ),
    _spec(
        "documentation_scanner",
        "documentation specialist that finds READMEs, API docs and code comments",
        f"""
You are a Documentation Specialist. Find the documentation relevant to this task.

Task: {{user_prompt}}
Project: {{project_info}}

Look for:
- README files and guides
- Docstrings and code comments
- API documentation
- Usage examples

{_SNIPPET_REPLY}
""",
        WorkerCategory.DOCUMENTATION,
        WorkerPriority.LOW,
        provides=("documentation", "code_comments"),
    ),
    _spec(
        "refactor_advisor",
        "refactoring advisor that suggests code improvements and better abstractions",
        """
You are a Refactoring Advisor. Look for improvement opportunities in the code
involved in this task.

Task: {user_prompt}
Project: {project_info}

Look for:
- Code duplication
- Functions that are too complex
- Missing abstractions
- Maintainability problems

Respond with JSON: an array of the code worth refactoring, each with content,
file_path, kind and description.
""",
        WorkerCategory.TASK_CLASSIFICATION,
        WorkerPriority.LOW,
        dependencies=("frontend_scanner", "backend_scanner"),
        provides=("refactoring_suggestions", "code_improvements"),
    ),
)
