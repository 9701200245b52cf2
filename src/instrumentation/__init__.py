"""Instrumented application descriptors consumed by the patchers."""

from .model import InstrumentationError, InstrumentedApplication, LanguageDeclaration, OwnerReference

__all__ = [
    "InstrumentationError",
    "InstrumentedApplication",
    "LanguageDeclaration",
    "OwnerReference",
]
