from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, MutableMapping, Optional

from src.common.languages import ProgrammingLanguage
from src.instrumentation.model import InstrumentedApplication, LanguageDeclaration

from .base import PatchOutcome, PatchReport, PatchStatus, Patcher
from .config import PatcherConfig
from .golang import GolangPatcher

logger = logging.getLogger(__name__)

PatcherFactory = Callable[[PatcherConfig], Patcher]

PATCHERS: Dict[ProgrammingLanguage, PatcherFactory] = {
    ProgrammingLanguage.GO: GolangPatcher,
}


def get_patcher(
    language: ProgrammingLanguage, config: Optional[PatcherConfig] = None
) -> Optional[Patcher]:
    factory = PATCHERS.get(language)
    if factory is None:
        return None
    return factory(config or PatcherConfig())


def modify_object(
    pod_template: MutableMapping[str, Any],
    application: InstrumentedApplication,
    *,
    config: Optional[PatcherConfig] = None,
    force: bool = False,
) -> PatchReport:
    """Apply every supported language variant declared by ``application``.

    A variant that already reports instrumented is left untouched unless
    ``force`` is set. A variant is not patched when none of its declarations
    has a process name and a matching container, so the init container and
    volumes are never staged for nothing. Declarations for languages without
    a patcher are reported as skipped.
    """

    report = PatchReport()
    for language in _declared_languages(application):
        declarations = application.languages_for(language)
        patcher = get_patcher(language, config)
        if patcher is None:
            logger.warning("no patcher registered for language %s", language.value)
            report.outcomes.extend(
                _skipped(decl.container_name, language, "no patcher for language")
                for decl in declarations
            )
            continue

        if not force and patcher.is_instrumented(pod_template, application):
            logger.info("pod template already instrumented for %s; skipping", language.value)
            report.outcomes.extend(
                _skipped(decl.container_name, language, "already instrumented")
                for decl in declarations
            )
            continue

        if not _has_patchable_declaration(pod_template, declarations):
            logger.warning("no patchable %s declaration in pod template; skipping", language.value)
            report.outcomes.extend(_unpatchable(decl, language) for decl in declarations)
            continue

        report.extend(patcher.patch(pod_template, application))
    return report


def is_instrumented(
    pod_template: MutableMapping[str, Any],
    application: InstrumentedApplication,
    *,
    config: Optional[PatcherConfig] = None,
) -> bool:
    for language in _declared_languages(application):
        patcher = get_patcher(language, config)
        if patcher is not None and patcher.is_instrumented(pod_template, application):
            return True
    return False


def _declared_languages(application: InstrumentedApplication) -> List[ProgrammingLanguage]:
    ordered: List[ProgrammingLanguage] = []
    for decl in application.languages:
        if decl.language not in ordered:
            ordered.append(decl.language)
    return ordered


def _has_patchable_declaration(
    pod_template: MutableMapping[str, Any], declarations: List[LanguageDeclaration]
) -> bool:
    containers = (pod_template.get("spec") or {}).get("containers") or []
    names = {c.get("name") for c in containers if isinstance(c, dict)}
    return any(decl.process_name and decl.container_name in names for decl in declarations)


def _unpatchable(decl: LanguageDeclaration, language: ProgrammingLanguage) -> PatchOutcome:
    if not decl.process_name:
        return _skipped(decl.container_name, language, "process name not detected")
    return _skipped(decl.container_name, language, "container not found")


def _skipped(container_name: str, language: ProgrammingLanguage, reason: str) -> PatchOutcome:
    return PatchOutcome(
        container_name=container_name,
        language=language,
        status=PatchStatus.SKIPPED,
        reason=reason,
    )


__all__ = ["PATCHERS", "get_patcher", "is_instrumented", "modify_object"]
