from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, MutableMapping, Optional, Protocol

from src.common.languages import ProgrammingLanguage
from src.instrumentation.model import InstrumentedApplication


class PatchStatus(str, Enum):
    PATCHED = "patched"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PatchOutcome:
    container_name: str
    language: ProgrammingLanguage
    status: PatchStatus
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "container": self.container_name,
            "language": self.language.value,
            "status": self.status.value,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class PatchReport:
    outcomes: List[PatchOutcome] = field(default_factory=list)

    @property
    def patched(self) -> List[PatchOutcome]:
        return [o for o in self.outcomes if o.status is PatchStatus.PATCHED]

    @property
    def skipped(self) -> List[PatchOutcome]:
        return [o for o in self.outcomes if o.status is PatchStatus.SKIPPED]

    @property
    def failed(self) -> List[PatchOutcome]:
        return [o for o in self.outcomes if o.status is PatchStatus.FAILED]

    @property
    def changed(self) -> bool:
        return bool(self.patched)

    def extend(self, other: "PatchReport") -> None:
        self.outcomes.extend(other.outcomes)

    def to_list(self) -> List[Dict[str, Any]]:
        return [outcome.to_dict() for outcome in self.outcomes]


class Patcher(Protocol):
    """Capability set every language variant exposes to the dispatcher."""

    language: ProgrammingLanguage

    def patch(
        self,
        pod_template: MutableMapping[str, Any],
        application: InstrumentedApplication,
    ) -> PatchReport:
        ...

    def is_instrumented(
        self,
        pod_template: MutableMapping[str, Any],
        application: InstrumentedApplication,
    ) -> bool:
        ...


def instrumentation_container_name(container_name: str) -> str:
    return f"{container_name}-instrumentation"


__all__ = [
    "PatchOutcome",
    "PatchReport",
    "PatchStatus",
    "Patcher",
    "instrumentation_container_name",
]
