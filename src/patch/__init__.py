"""Pod template patchers injecting per-language auto-instrumentation."""

from .base import PatchOutcome, PatchReport, PatchStatus, Patcher
from .entrypoint import calculate_init_args
from .golang import GolangPatcher
from .registry import get_patcher, is_instrumented, modify_object

__all__ = [
    "GolangPatcher",
    "PatchOutcome",
    "PatchReport",
    "PatchStatus",
    "Patcher",
    "calculate_init_args",
    "get_patcher",
    "is_instrumented",
    "modify_object",
]
