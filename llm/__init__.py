"""
LLM Module for the Lead Scoring Engine.

This module handles:
- LLM provider abstraction (Bedrock, OpenAI)
- Prompt template management
- Semantic lead analysis with graceful fallback
"""

from .semantic_analyzer import SemanticAnalyzer, MalformedAnalysisError, parse_analysis
from .prompt_templates import PromptTemplates, PromptType

__all__ = [
    "SemanticAnalyzer",
    "MalformedAnalysisError",
    "parse_analysis",
    "PromptTemplates",
    "PromptType",
]
