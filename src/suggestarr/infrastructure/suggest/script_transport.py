"""Script-injection (JSONP) suggestion transport.

Each call races three completion sources: the engine invoking the
uniquely named callback, the timeout timer, and the script's load error.
The first to arrive is fed as a :data:`CallbackOutcome` into a single
finalization routine, which cleans up (callback binding, script element,
timer) and resolves the caller's future.  Every later trigger is a no-op.

There is no superseding here: concurrent calls for the same engine and
query get independent names, timers and script elements.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from typing import Any

import structlog

from suggestarr.domain.entities.suggestion import (
    CallbackOutcome,
    CallbackResolved,
    CallbackTimedOut,
    DiagnosticHook,
    ScriptLoadFailed,
    SearchEngine,
    SuggestionDiagnostic,
    TransportClosed,
)
from suggestarr.infrastructure.suggest.normalizers import normalize
from suggestarr.infrastructure.suggest.script_host import ScriptElement, ScriptHost
from suggestarr.infrastructure.suggest.urls import SCRIPT_URL_TEMPLATES, build_script_url

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0

# Process-wide so names stay unique across transport instances.
_callback_ids = itertools.count()


def next_callback_name() -> str:
    return f"jsonp_cb_{int(time.time() * 1000)}_{next(_callback_ids)}"


class _CallbackRegistration:
    """One outstanding script-injection attempt."""

    def __init__(
        self,
        *,
        transport: ScriptCallbackTransport,
        engine: SearchEngine,
        query: str,
        name: str,
        result: asyncio.Future[list[str]],
    ) -> None:
        self.transport = transport
        self.engine = engine
        self.query = query
        self.name = name
        self.result = result
        self.script = ScriptElement()
        self.timer: asyncio.TimerHandle | None = None
        self.outcome: CallbackOutcome | None = None

    def cleanup(self) -> None:
        """Release callback binding, script element and timer (idempotent)."""
        transport = self.transport
        transport._namespace.delete(self.name)
        if transport._host.contains(self.script):
            transport._host.remove(self.script)
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
        transport._registrations.pop(self.name, None)

    def on_callback(self, payload: Any) -> None:
        self.finish(CallbackResolved(payload))

    def on_timeout(self) -> None:
        self.finish(CallbackTimedOut())

    def on_load_error(self) -> None:
        self.finish(ScriptLoadFailed())

    def on_result_done(self, result: asyncio.Future[list[str]]) -> None:
        if result.cancelled():
            self.cleanup()

    def finish(self, outcome: CallbackOutcome) -> None:
        """Single finalization point; only the first outcome takes effect."""
        self.cleanup()
        if self.outcome is not None:
            return
        self.outcome = outcome

        if isinstance(outcome, CallbackResolved):
            suggestions = normalize(self.engine, outcome.payload)
            if not suggestions:
                self.transport._report(self.engine, self.query, "empty_or_unparseable")
        else:
            suggestions = []
            reason = {
                CallbackTimedOut: "timeout",
                ScriptLoadFailed: "load_error",
                TransportClosed: "closed",
            }[type(outcome)]
            log.debug(
                "suggest_script_degraded",
                engine=self.engine.value,
                callback=self.name,
                reason=reason,
            )
            self.transport._report(self.engine, self.query, reason)

        if not self.result.done():
            self.result.set_result(suggestions)


class ScriptCallbackTransport:
    """Retrieve suggestions from JSONP-only engines via a :class:`ScriptHost`."""

    def __init__(
        self,
        *,
        host: ScriptHost,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        on_diagnostic: DiagnosticHook | None = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._host = host
        self._namespace = host.namespace
        self._timeout = timeout_seconds
        self._on_diagnostic = on_diagnostic
        self._registrations: dict[str, _CallbackRegistration] = {}

    @property
    def outstanding_count(self) -> int:
        return len(self._registrations)

    def fetch(self, engine: SearchEngine, query: str) -> asyncio.Future[list[str]]:
        loop = asyncio.get_running_loop()
        registration = _CallbackRegistration(
            transport=self,
            engine=engine,
            query=query,
            name=next_callback_name(),
            result=loop.create_future(),
        )

        if engine not in SCRIPT_URL_TEMPLATES:
            log.debug(
                "suggest_script_engine_unsupported",
                engine=getattr(engine, "value", engine),
            )
            registration.cleanup()
            registration.result.set_result([])
            return registration.result

        url = build_script_url(engine, query, registration.name)

        self._registrations[registration.name] = registration
        registration.timer = loop.call_later(self._timeout, registration.on_timeout)
        self._namespace.define(registration.name, registration.on_callback)

        script = registration.script
        script.src = url
        script.on_error = registration.on_load_error
        self._host.append(script)
        # Caller gave up: release resources now instead of at timeout.
        registration.result.add_done_callback(registration.on_result_done)

        log.debug(
            "suggest_script_injected",
            engine=engine.value,
            callback=registration.name,
        )
        return registration.result

    async def aclose(self) -> None:
        """Finalize every outstanding call with an empty list."""
        for registration in list(self._registrations.values()):
            registration.finish(TransportClosed())
        await self._host.aclose()

    def _report(self, engine: SearchEngine, query: str, reason: str) -> None:
        if self._on_diagnostic is None:
            return
        try:
            self._on_diagnostic(
                SuggestionDiagnostic(
                    engine=engine.value,
                    query=query,
                    transport="script",
                    reason=reason,
                )
            )
        except Exception:
            log.warning("suggest_diagnostic_hook_failed", exc_info=True)
