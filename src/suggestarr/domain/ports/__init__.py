from .suggestion_transport import SuggestionTransportPort

__all__ = [
    "SuggestionTransportPort",
]
