from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_GO_AGENT_IMAGE = "keyval/otel-go-agent:v0.6.1"
DEFAULT_INIT_IMAGE = "ghcr.io/keyval-dev/odigos/init:v0.1.37"
DEFAULT_INIT_PULL_POLICY = "IfNotPresent"

_PULL_POLICIES = ("Always", "IfNotPresent", "Never")


@dataclass(frozen=True)
class PatcherConfig:
    go_agent_image: str = DEFAULT_GO_AGENT_IMAGE
    init_image: str = DEFAULT_INIT_IMAGE
    init_pull_policy: str = DEFAULT_INIT_PULL_POLICY

    def __post_init__(self) -> None:
        if not self.go_agent_image:
            raise ValueError("Go agent image is required")
        if not self.init_image:
            raise ValueError("Init image is required")
        if self.init_pull_policy not in _PULL_POLICIES:
            raise ValueError(
                f"Init pull policy must be one of {', '.join(_PULL_POLICIES)}"
            )

    @classmethod
    def from_env(
        cls,
        go_agent_image: Optional[str] = None,
        init_image: Optional[str] = None,
        init_pull_policy: Optional[str] = None,
    ) -> "PatcherConfig":
        return cls(
            go_agent_image=go_agent_image
            or os.getenv("INSTRUMENTOR_GO_AGENT_IMAGE", DEFAULT_GO_AGENT_IMAGE),
            init_image=init_image or os.getenv("INSTRUMENTOR_INIT_IMAGE", DEFAULT_INIT_IMAGE),
            init_pull_policy=init_pull_policy
            or os.getenv("INSTRUMENTOR_INIT_PULL_POLICY", DEFAULT_INIT_PULL_POLICY),
        )


__all__ = [
    "DEFAULT_GO_AGENT_IMAGE",
    "DEFAULT_INIT_IMAGE",
    "DEFAULT_INIT_PULL_POLICY",
    "PatcherConfig",
]
