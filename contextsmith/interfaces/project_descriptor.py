"""Project description protocol and the default detected-signature value."""

from dataclasses import dataclass
from typing import Any, Protocol


class ProjectDescriptor(Protocol):
    """Anything that can summarize a project in one line for prompts."""

    def to_description(self) -> str:
        ...


@dataclass(frozen=True)
class ProjectSignature:
    """Stack facts detected for a project.

    Detection itself happens outside ContextSmith; this only carries and
    renders the result.
    """

    language: str = ""
    framework: str = ""
    package_manager: str = ""
    ui_library: str = ""
    validation: str = ""

    def to_description(self) -> str:
        parts = [
            ("Language", self.language),
            ("Framework", self.framework),
            ("Package Manager", self.package_manager),
            ("UI Library", self.ui_library),
            ("Validation", self.validation),
        ]
        return ", ".join(f"{label}: {value}" for label, value in parts if value)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectSignature":
        return cls(
            language=str(data.get("language") or ""),
            framework=str(data.get("framework") or ""),
            package_manager=str(data.get("package_manager") or ""),
            ui_library=str(data.get("ui_library") or ""),
            validation=str(data.get("validation") or ""),
        )
