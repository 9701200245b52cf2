from __future__ import annotations

OTLP_PORT = 4317

NODE_IP_ENV_NAME = "NODE_IP"
HOST_IP_ENV_VALUE = f"$({NODE_IP_ENV_NAME})"

__all__ = ["OTLP_PORT", "NODE_IP_ENV_NAME", "HOST_IP_ENV_VALUE"]
