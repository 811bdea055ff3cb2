"""Example asset helpers for ``lib_rconfig``."""

from .generate import ExampleSpec, generate_examples

__all__ = [
    "ExampleSpec",
    "generate_examples",
]
