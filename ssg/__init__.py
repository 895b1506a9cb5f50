"""Static site generation for serialized novel catalogs."""

from .pipeline import GenerationError, GenerationResult, Generator, generate

__all__ = ["GenerationError", "GenerationResult", "Generator", "generate"]
