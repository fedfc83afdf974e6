"""Content generation for parent summaries."""

from .llm_generator import LLMSummaryGenerator, build_system_prompt, build_user_prompt, parse_generation_output

__all__ = [
    "LLMSummaryGenerator",
    "build_system_prompt",
    "build_user_prompt",
    "parse_generation_output",
]
