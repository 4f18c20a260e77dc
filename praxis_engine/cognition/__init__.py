from .parsing import extract_json, parse_screen_analysis, parse_subtasks, parse_thought
from .service import CognitionService, GeneratedAnswer, OpenAICognitionService

__all__ = [
    "CognitionService",
    "OpenAICognitionService",
    "GeneratedAnswer",
    "extract_json",
    "parse_thought",
    "parse_screen_analysis",
    "parse_subtasks",
]
