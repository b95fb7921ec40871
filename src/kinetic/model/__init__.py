"""LLM model wrappers."""

from kinetic.model.agent import CherryPickAgent, inject_provider_params

__all__ = [
    "CherryPickAgent",
    "inject_provider_params",
]
