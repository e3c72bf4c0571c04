"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .arguments import MeetingSuggestionArguments, parse_arguments
from .meeting_suggester import CalendarClientProtocol, MeetingSuggestionService

__all__ = [
    "CalendarClientProtocol",
    "MeetingSuggestionArguments",
    "MeetingSuggestionService",
    "parse_arguments",
]
