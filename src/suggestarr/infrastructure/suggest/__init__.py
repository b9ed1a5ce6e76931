from .fetch_transport import CancellableFetchTransport
from .normalizers import normalize
from .script_host import CallbackNamespace, ScriptElement, ScriptHost
from .script_transport import ScriptCallbackTransport

__all__ = [
    "CallbackNamespace",
    "CancellableFetchTransport",
    "ScriptCallbackTransport",
    "ScriptElement",
    "ScriptHost",
    "normalize",
]
