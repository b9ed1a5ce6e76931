from .suggestion import (
    FETCH_ENGINES,
    SCRIPT_ENGINES,
    CallbackOutcome,
    CallbackResolved,
    CallbackTimedOut,
    DiagnosticHook,
    ScriptLoadFailed,
    SearchEngine,
    SuggestionDiagnostic,
    TransportClosed,
    TransportName,
    request_key,
)

__all__ = [
    "FETCH_ENGINES",
    "SCRIPT_ENGINES",
    "CallbackOutcome",
    "CallbackResolved",
    "CallbackTimedOut",
    "DiagnosticHook",
    "ScriptLoadFailed",
    "SearchEngine",
    "SuggestionDiagnostic",
    "TransportClosed",
    "TransportName",
    "request_key",
]
