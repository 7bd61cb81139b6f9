"""
Oral exam practice feedback service
Session lifecycle guard and post-session feedback pipeline
"""

__version__ = "1.0.0"
__author__ = "Oral Practice Team"
__description__ = "Transcript analysis and rubric grading for oral exam practice sessions"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
    "__description__"
]
