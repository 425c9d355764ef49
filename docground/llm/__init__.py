"""LLM integration helpers."""

from .fact_refs import FactRefProposer
from .openai_client import OpenAIGenerator
from .section_writer import GroundedSectionWriter

__all__ = ["FactRefProposer", "GroundedSectionWriter", "OpenAIGenerator"]
