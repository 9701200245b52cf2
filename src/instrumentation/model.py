from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.common.languages import ProgrammingLanguage, normalise_language


class InstrumentationError(ValueError):
    """Raised when an instrumented application descriptor cannot be parsed."""


@dataclass(frozen=True)
class LanguageDeclaration:
    language: ProgrammingLanguage
    container_name: str
    process_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "language": self.language.value,
            "containerName": self.container_name,
        }
        if self.process_name:
            data["processName"] = self.process_name
        return data


@dataclass(frozen=True)
class OwnerReference:
    kind: str
    name: str
    api_version: str = ""
    uid: str = ""


@dataclass(frozen=True)
class InstrumentedApplication:
    """Detected runtime and executable for every container of one workload."""

    languages: Tuple[LanguageDeclaration, ...] = ()
    owner_references: Tuple[OwnerReference, ...] = ()
    name: str = ""
    namespace: str = ""

    @property
    def owner_name(self) -> Optional[str]:
        if not self.owner_references:
            return None
        return self.owner_references[0].name

    def languages_for(self, language: ProgrammingLanguage) -> List[LanguageDeclaration]:
        return [decl for decl in self.languages if decl.language == language]

    @classmethod
    def from_dict(cls, data: Any) -> "InstrumentedApplication":
        if not isinstance(data, Mapping):
            raise InstrumentationError("instrumented application must be a mapping")
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        if not isinstance(metadata, Mapping) or not isinstance(spec, Mapping):
            raise InstrumentationError("metadata and spec must be mappings")

        raw_languages = spec.get("languages") or []
        if not isinstance(raw_languages, list):
            raise InstrumentationError("spec.languages must be a list")
        languages = tuple(
            _parse_declaration(entry, idx) for idx, entry in enumerate(raw_languages)
        )

        raw_owners = metadata.get("ownerReferences") or []
        if not isinstance(raw_owners, list):
            raise InstrumentationError("metadata.ownerReferences must be a list")
        owners = tuple(_parse_owner(entry, idx) for idx, entry in enumerate(raw_owners))

        return cls(
            languages=languages,
            owner_references=owners,
            name=str(metadata.get("name") or ""),
            namespace=str(metadata.get("namespace") or ""),
        )


def _parse_declaration(entry: Any, idx: int) -> LanguageDeclaration:
    if not isinstance(entry, Mapping):
        raise InstrumentationError(f"spec.languages[{idx}] must be a mapping")
    container_name = entry.get("containerName")
    if not isinstance(container_name, str) or not container_name:
        raise InstrumentationError(f"spec.languages[{idx}] missing containerName")
    raw_language = entry.get("language")
    language = normalise_language(raw_language if isinstance(raw_language, str) else None)
    if language is None:
        raise InstrumentationError(
            f"spec.languages[{idx}] has unknown language {raw_language!r}"
        )
    process_name = entry.get("processName") or ""
    if not isinstance(process_name, str):
        raise InstrumentationError(f"spec.languages[{idx}].processName must be a string")
    return LanguageDeclaration(
        language=language,
        container_name=container_name,
        process_name=process_name,
    )


def _parse_owner(entry: Any, idx: int) -> OwnerReference:
    if not isinstance(entry, Mapping):
        raise InstrumentationError(f"metadata.ownerReferences[{idx}] must be a mapping")
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise InstrumentationError(f"metadata.ownerReferences[{idx}] missing name")
    return OwnerReference(
        kind=str(entry.get("kind") or ""),
        name=name,
        api_version=str(entry.get("apiVersion") or ""),
        uid=str(entry.get("uid") or ""),
    )


__all__ = [
    "InstrumentationError",
    "InstrumentedApplication",
    "LanguageDeclaration",
    "OwnerReference",
]
