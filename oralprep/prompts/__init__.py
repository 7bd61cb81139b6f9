# oralprep/prompts/__init__.py
"""
Prompts package for the oral practice feedback service
Contains the rubric grading prompt
"""

from .grading_prompts import build_grading_prompt, format_conversation, format_image_context

__all__ = [
    "build_grading_prompt", "format_conversation", "format_image_context"
]
