from __future__ import annotations

import logging
from typing import Any, Dict, List, MutableMapping, Optional

from src.common.consts import HOST_IP_ENV_VALUE, NODE_IP_ENV_NAME, OTLP_PORT
from src.common.languages import ProgrammingLanguage
from src.instrumentation.model import InstrumentedApplication, LanguageDeclaration

from .base import PatchOutcome, PatchReport, PatchStatus, instrumentation_container_name
from .config import PatcherConfig
from .entrypoint import calculate_init_args

logger = logging.getLogger(__name__)

KERNEL_DEBUG_VOLUME_NAME = "kernel-debug"
KERNEL_DEBUG_HOST_PATH = "/sys/kernel/debug"
EXPORTER_ENDPOINT_ENV = "OTEL_EXPORTER_OTLP_ENDPOINT"
SERVICE_NAME_ENV = "OTEL_SERVICE_NAME"
TARGET_EXE_ENV = "OTEL_TARGET_EXE"

INIT_CONTAINER_NAME = "odigos-init"
INIT_VOLUME_NAME = "odigos"
INIT_MOUNT_PATH = "/odigos"
INIT_EXE_PATH = "/odigos/init"
INIT_COPY_COMMAND = ("cp", "-a", "/odigos-init/.", "/odigos/")


class GolangPatcher:
    """Injects the eBPF Go agent as a sidecar and wraps the target entrypoint."""

    language = ProgrammingLanguage.GO

    def __init__(self, config: Optional[PatcherConfig] = None) -> None:
        self.config = config or PatcherConfig()

    def patch(
        self,
        pod_template: MutableMapping[str, Any],
        application: InstrumentedApplication,
    ) -> PatchReport:
        spec = pod_template.setdefault("spec", {})
        report = PatchReport()

        init_containers = list(spec.get("initContainers") or [])
        init_containers.append(self._init_container())
        spec["initContainers"] = init_containers

        containers: List[Dict[str, Any]] = list(spec.get("containers") or [])
        for decl in application.languages_for(self.language):
            if not decl.process_name:
                logger.warning(
                    "could not find binary path for golang application in container %s",
                    decl.container_name,
                )
                report.outcomes.append(
                    self._outcome(decl, PatchStatus.SKIPPED, "process name not detected")
                )
                continue

            target_idx = _find_container(containers, decl.container_name)
            if target_idx is None:
                logger.warning(
                    "container %s declared for golang instrumentation not found in pod template",
                    decl.container_name,
                )
                report.outcomes.append(
                    self._outcome(decl, PatchStatus.FAILED, "container not found")
                )
                continue

            containers[target_idx] = _wrap_target_container(
                containers[target_idx], decl.process_name
            )
            containers.append(
                self._agent_container(decl, _service_name(application, decl))
            )
            report.outcomes.append(self._outcome(decl, PatchStatus.PATCHED))
            logger.info(
                "patched container %s for golang instrumentation (exe %s)",
                decl.container_name,
                decl.process_name,
            )

        spec["containers"] = containers
        # TODO: fall back to hostPID when shareProcessNamespace was explicitly disabled
        spec["shareProcessNamespace"] = True

        volumes = list(spec.get("volumes") or [])
        volumes.append(
            {
                "name": KERNEL_DEBUG_VOLUME_NAME,
                "hostPath": {"path": KERNEL_DEBUG_HOST_PATH},
            }
        )
        volumes.append({"name": INIT_VOLUME_NAME, "emptyDir": {}})
        spec["volumes"] = volumes
        return report

    def is_instrumented(
        self,
        pod_template: MutableMapping[str, Any],
        application: InstrumentedApplication,
    ) -> bool:
        # Presence of the sidecar only; its content is not compared.
        containers = (pod_template.get("spec") or {}).get("containers") or []
        names = {c.get("name") for c in containers if isinstance(c, dict)}
        for decl in application.languages_for(self.language):
            if instrumentation_container_name(decl.container_name) in names:
                return True
        return False

    def _init_container(self) -> Dict[str, Any]:
        return {
            "name": INIT_CONTAINER_NAME,
            "image": self.config.init_image,
            "imagePullPolicy": self.config.init_pull_policy,
            "command": list(INIT_COPY_COMMAND),
            "volumeMounts": [{"name": INIT_VOLUME_NAME, "mountPath": INIT_MOUNT_PATH}],
        }

    def _agent_container(self, decl: LanguageDeclaration, service_name: str) -> Dict[str, Any]:
        return {
            "name": instrumentation_container_name(decl.container_name),
            "image": self.config.go_agent_image,
            "env": [
                _field_ref_env(NODE_IP_ENV_NAME, "status.hostIP"),
                {"name": EXPORTER_ENDPOINT_ENV, "value": f"{HOST_IP_ENV_VALUE}:{OTLP_PORT}"},
                {"name": SERVICE_NAME_ENV, "value": service_name},
                {"name": TARGET_EXE_ENV, "value": decl.process_name},
            ],
            "volumeMounts": [
                {"name": KERNEL_DEBUG_VOLUME_NAME, "mountPath": KERNEL_DEBUG_HOST_PATH}
            ],
            "securityContext": _tracer_security_context(),
        }

    def _outcome(
        self, decl: LanguageDeclaration, status: PatchStatus, reason: Optional[str] = None
    ) -> PatchOutcome:
        return PatchOutcome(
            container_name=decl.container_name,
            language=self.language,
            status=status,
            reason=reason,
        )


def _service_name(application: InstrumentedApplication, decl: LanguageDeclaration) -> str:
    owner_name = application.owner_name
    if len(application.languages) == 1 and owner_name:
        return owner_name
    return decl.container_name


def _find_container(containers: List[Dict[str, Any]], name: str) -> Optional[int]:
    for idx, container in enumerate(containers):
        if isinstance(container, dict) and container.get("name") == name:
            return idx
    return None


def _wrap_target_container(container: Dict[str, Any], exe_path: str) -> Dict[str, Any]:
    wrapped = dict(container)
    wrapped["args"] = calculate_init_args(
        container.get("command") or [],
        container.get("args") or [],
        exe_path,
    )
    wrapped["command"] = [INIT_EXE_PATH]
    wrapped["volumeMounts"] = list(container.get("volumeMounts") or []) + [
        {"name": INIT_VOLUME_NAME, "mountPath": INIT_MOUNT_PATH}
    ]
    wrapped["env"] = list(container.get("env") or []) + [
        _field_ref_env("HOST_IP", "status.hostIP"),
        _field_ref_env("POD_NAME", "metadata.name"),
        _field_ref_env("POD_NAMESPACE", "metadata.namespace"),
    ]
    return wrapped


def _field_ref_env(name: str, field_path: str) -> Dict[str, Any]:
    return {"name": name, "valueFrom": {"fieldRef": {"fieldPath": field_path}}}


def _tracer_security_context() -> Dict[str, Any]:
    return {
        "capabilities": {"add": ["SYS_PTRACE"]},
        "privileged": True,
        "runAsUser": 0,
    }


__all__ = [
    "GolangPatcher",
    "INIT_CONTAINER_NAME",
    "INIT_EXE_PATH",
    "INIT_MOUNT_PATH",
    "INIT_VOLUME_NAME",
    "KERNEL_DEBUG_HOST_PATH",
    "KERNEL_DEBUG_VOLUME_NAME",
]
