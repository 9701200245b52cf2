"""Locate and instrument the pod template embedded in a workload manifest."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import jsonpatch

from src.instrumentation.model import InstrumentedApplication

from .base import PatchReport
from .config import PatcherConfig
from .registry import is_instrumented, modify_object


class WorkloadError(ValueError):
    """Raised when a manifest does not carry a pod template we can patch."""


_TEMPLATE_POINTERS = {
    "Deployment": "/spec/template",
    "StatefulSet": "/spec/template",
    "DaemonSet": "/spec/template",
    "ReplicaSet": "/spec/template",
    "ReplicationController": "/spec/template",
    "Job": "/spec/template",
    "CronJob": "/spec/jobTemplate/spec/template",
    "PodTemplate": "/template",
}


@dataclass
class InstrumentResult:
    manifest: Dict[str, Any]
    patch: List[Dict[str, Any]]
    report: PatchReport

    @property
    def changed(self) -> bool:
        return bool(self.patch)


def pod_template_pointer(manifest: Mapping[str, Any]) -> str:
    if not isinstance(manifest, Mapping):
        raise WorkloadError("manifest must be a mapping")
    kind = manifest.get("kind")
    if kind is None:
        # Bare pod template spec: {"metadata": ..., "spec": {"containers": ...}}
        spec = manifest.get("spec")
        if isinstance(spec, Mapping) and "containers" in spec:
            return ""
        raise WorkloadError("manifest has no kind and is not a pod template")
    pointer = _TEMPLATE_POINTERS.get(kind)
    if pointer is None:
        raise WorkloadError(f"unsupported workload kind {kind!r}")
    return pointer


def get_pod_template(manifest: Mapping[str, Any]) -> Dict[str, Any]:
    pointer = pod_template_pointer(manifest)
    try:
        template = jsonpatch.JsonPointer(pointer).resolve(manifest)
    except jsonpatch.JsonPointerException as exc:
        raise WorkloadError(f"pod template missing at {pointer}: {exc}") from exc
    if not isinstance(template, dict):
        raise WorkloadError(f"pod template at {pointer or '/'} must be a mapping")
    return template


def instrument_manifest(
    manifest: Mapping[str, Any],
    application: InstrumentedApplication,
    *,
    config: Optional[PatcherConfig] = None,
    force: bool = False,
) -> InstrumentResult:
    patched = copy.deepcopy(dict(manifest))
    template = get_pod_template(patched)
    report = modify_object(template, application, config=config, force=force)
    ops = jsonpatch.make_patch(dict(manifest), patched).patch
    return InstrumentResult(manifest=patched, patch=ops, report=report)


def manifest_is_instrumented(
    manifest: Mapping[str, Any],
    application: InstrumentedApplication,
    *,
    config: Optional[PatcherConfig] = None,
) -> bool:
    return is_instrumented(get_pod_template(manifest), application, config=config)


__all__ = [
    "InstrumentResult",
    "WorkloadError",
    "get_pod_template",
    "instrument_manifest",
    "manifest_is_instrumented",
    "pod_template_pointer",
]
