"""Document-like host for script-injection (JSONP) retrieval.

The browser mechanism has two pieces of shared state: the global
``window`` object that holds named callbacks, and the document that
loads ``<script>`` elements.  :class:`CallbackNamespace` and
:class:`ScriptHost` model them:

- Appending a :class:`ScriptElement` starts loading its ``src`` in a
  background task.
- A failed load (transport error or non-2xx status) fires the element's
  ``on_error`` handler.
- A loaded body is "executed": the first invocation of a callback name
  currently bound in the namespace (``name(<literal>)``) is located, its
  argument decoded and the bound function called with it.
- A body that never invokes a bound callback, or whose argument cannot be
  decoded, has no effect (like a script that throws before calling back).
- A detached element never executes and never reports errors.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

_INVOCATION_RE = re.compile(r"([A-Za-z_$][\w$]*)\s*\(")
# A double-quoted string literal (group 1), or a bare object key as emitted
# by Baidu, e.g. {q:"x",p:false,s:[...]} (groups 2 and 3).
_JS_TOKEN_RE = re.compile(r'("(?:\\.|[^"\\])*")|([{,]\s*)([A-Za-z_$][\w$]*)\s*:')

ScriptCallback = Callable[[Any], None]


class CallbackNamespace:
    """Table of globally named callbacks that loaded scripts may invoke.

    Not thread-safe; safe for single-threaded asyncio.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, ScriptCallback] = {}

    def define(self, name: str, callback: ScriptCallback) -> None:
        self._callbacks[name] = callback

    def get(self, name: str) -> ScriptCallback | None:
        return self._callbacks.get(name)

    def delete(self, name: str) -> bool:
        """Remove *name*. True = removed, False = was not bound."""
        return self._callbacks.pop(name, None) is not None

    def names(self) -> list[str]:
        return list(self._callbacks)

    def __contains__(self, name: object) -> bool:
        return name in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)


@dataclass(eq=False)
class ScriptElement:
    """A ``<script src=...>`` element (identity semantics)."""

    src: str = ""
    on_error: Callable[[], None] | None = None
    _load_task: asyncio.Task[None] | None = field(default=None, repr=False)


def _quote_bare_key(match: re.Match[str]) -> str:
    if match.group(1) is not None:
        return match.group(1)
    return f'{match.group(2)}"{match.group(3)}":'


def loads_js_literal(text: str) -> Any:
    """Decode a JSON value, tolerating bare object keys.

    Raises ``ValueError`` when *text* is not decodable.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    return json.loads(_JS_TOKEN_RE.sub(_quote_bare_key, text))


def _closing_paren(body: str, start: int) -> int:
    """Index of the ``)`` closing an argument list opened just before *start*.

    Brackets inside string literals are skipped.  Returns -1 when the call
    is never closed.
    """
    depth = 1
    quote: str | None = None
    escaped = False
    for index in range(start, len(body)):
        char = body[index]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0:
                return index if char == ")" else -1
    return -1


def find_invocation(body: str, namespace: CallbackNamespace) -> tuple[str, Any] | None:
    """Locate the first call of a bound callback in *body*.

    Returns ``(name, decoded_argument)`` or ``None`` when no bound name is
    invoked.  Raises ``ValueError`` when the argument is not decodable.
    """
    for match in _INVOCATION_RE.finditer(body):
        name = match.group(1)
        if name not in namespace:
            continue
        end = _closing_paren(body, match.end())
        if end < 0:
            raise ValueError(f"unterminated call to {name}")
        return name, loads_js_literal(body[match.end() : end].strip())
    return None


class ScriptHost:
    """Loads attached script elements with httpx and runs their callbacks."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        namespace: CallbackNamespace,
    ) -> None:
        self._http = http_client
        self._namespace = namespace
        self._scripts: set[ScriptElement] = set()
        # Cancelled loads that have not finished unwinding yet.
        self._abandoned: set[asyncio.Task[None]] = set()

    @property
    def namespace(self) -> CallbackNamespace:
        return self._namespace

    @property
    def attached_count(self) -> int:
        return len(self._scripts)

    def contains(self, script: ScriptElement) -> bool:
        return script in self._scripts

    def append(self, script: ScriptElement) -> None:
        """Attach *script* and begin loading it."""
        if not script.src:
            raise ValueError("script element has no src")
        self._scripts.add(script)
        script._load_task = asyncio.get_running_loop().create_task(
            self._load(script)
        )

    def remove(self, script: ScriptElement) -> None:
        """Detach *script*; an in-flight load is abandoned."""
        self._scripts.discard(script)
        task = script._load_task
        script._load_task = None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
            self._abandoned.add(task)
            task.add_done_callback(self._abandoned.discard)

    async def aclose(self) -> None:
        """Detach every script and wait for abandoned loads to unwind."""
        for script in list(self._scripts):
            self.remove(script)
        if self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load(self, script: ScriptElement) -> None:
        try:
            resp = await self._http.get(script.src)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            log.debug("script_load_failed", src=script.src, error=str(exc))
            if self.contains(script) and script.on_error is not None:
                script.on_error()
            return

        if not self.contains(script):
            return
        self._execute(script, resp.text)

    def _execute(self, script: ScriptElement, body: str) -> None:
        try:
            invocation = find_invocation(body, self._namespace)
        except ValueError as exc:
            log.debug("script_body_undecodable", src=script.src, error=str(exc))
            return
        if invocation is None:
            log.debug("script_invoked_no_callback", src=script.src)
            return

        name, argument = invocation
        callback = self._namespace.get(name)
        if callback is not None:
            callback(argument)


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
