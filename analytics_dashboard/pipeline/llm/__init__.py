"""
LLM utilities (client, prompts, parsers)
"""
from analytics_dashboard.pipeline.llm.client import call_llm_async
from analytics_dashboard.pipeline.llm.prompts import (
    build_solution_prompt,
    build_workflow_instruction,
)
from analytics_dashboard.pipeline.llm.parsers import parse_json

__all__ = [
    "call_llm_async",
    "build_solution_prompt",
    "build_workflow_instruction",
    "parse_json",
]
