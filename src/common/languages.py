"""Programming language identifiers shared by the instrumentation components."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional


class ProgrammingLanguage(str, Enum):
    JAVA = "java"
    PYTHON = "python"
    GO = "go"
    DOTNET = "dotnet"
    JAVASCRIPT = "javascript"


_LANGUAGE_NORMALISATION_MAP = {
    "java": ProgrammingLanguage.JAVA,
    "jvm": ProgrammingLanguage.JAVA,
    "python": ProgrammingLanguage.PYTHON,
    "py": ProgrammingLanguage.PYTHON,
    "go": ProgrammingLanguage.GO,
    "golang": ProgrammingLanguage.GO,
    "dotnet": ProgrammingLanguage.DOTNET,
    ".net": ProgrammingLanguage.DOTNET,
    "csharp": ProgrammingLanguage.DOTNET,
    "javascript": ProgrammingLanguage.JAVASCRIPT,
    "nodejs": ProgrammingLanguage.JAVASCRIPT,
    "node": ProgrammingLanguage.JAVASCRIPT,
}


@lru_cache(maxsize=None)
def normalise_language(language: Optional[str]) -> Optional[ProgrammingLanguage]:
    """Map a raw language tag to its canonical enum member, or ``None`` if unknown."""

    key = (language or "").strip().lower()
    if not key:
        return None
    return _LANGUAGE_NORMALISATION_MAP.get(key)


__all__ = ["ProgrammingLanguage", "normalise_language"]
