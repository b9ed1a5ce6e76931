from .fetch_suggestions import SuggestionDispatcher

__all__ = ["SuggestionDispatcher"]
