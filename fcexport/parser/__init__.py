"""Body markup parsing."""
from .markup import decode_entities, markup_to_text

__all__ = ["decode_entities", "markup_to_text"]
