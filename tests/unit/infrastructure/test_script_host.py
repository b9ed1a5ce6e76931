"""Tests for the JSONP script host and callback namespace."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from suggestarr.infrastructure.suggest.script_host import (
    CallbackNamespace,
    ScriptElement,
    ScriptHost,
    find_invocation,
    loads_js_literal,
)


def _make_host(
    namespace: CallbackNamespace,
    *,
    status: int = 200,
    body: str = "",
    hang: bool = False,
) -> ScriptHost:
    never = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        if hang:
            await never.wait()
        return httpx.Response(status, text=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScriptHost(http_client=client, namespace=namespace)


async def _settle(script: ScriptElement) -> None:
    task = script._load_task
    if task is not None:
        await asyncio.gather(task, return_exceptions=True)


class TestCallbackNamespace:
    def test_define_get_delete(self, namespace: CallbackNamespace) -> None:
        fn = lambda payload: None  # noqa: E731
        namespace.define("cb", fn)
        assert "cb" in namespace
        assert namespace.get("cb") is fn
        assert len(namespace) == 1
        assert namespace.delete("cb") is True
        assert namespace.delete("cb") is False
        assert namespace.get("cb") is None
        assert namespace.names() == []


class TestLoadsJsLiteral:
    def test_plain_json(self) -> None:
        assert loads_js_literal('["a", ["b"]]') == ["a", ["b"]]

    def test_bare_keys(self) -> None:
        text = '{q:"py",p:false,s:["python","pycharm"]}'
        assert loads_js_literal(text) == {
            "q": "py",
            "p": False,
            "s": ["python", "pycharm"],
        }

    def test_bare_keys_leave_string_contents_alone(self) -> None:
        text = '{q:"time",p:false,s:["time,hh:mm","{at:noon}","say \\"a,b:c\\""]}'
        assert loads_js_literal(text) == {
            "q": "time",
            "p": False,
            "s": ["time,hh:mm", "{at:noon}", 'say "a,b:c"'],
        }

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError):
            loads_js_literal("not a literal")


class TestFindInvocation:
    def test_simple_call(self, namespace: CallbackNamespace) -> None:
        namespace.define("cb_1", lambda p: None)
        assert find_invocation('cb_1(["q", ["a"]]);', namespace) == (
            "cb_1",
            ["q", ["a"]],
        )

    def test_guarded_call(self, namespace: CallbackNamespace) -> None:
        namespace.define("cb_1", lambda p: None)
        body = 'if(typeof cb_1 == \'function\') cb_1(["q",["a","b"]]);'
        assert find_invocation(body, namespace) == ("cb_1", ["q", ["a", "b"]])

    def test_parentheses_inside_payload(self, namespace: CallbackNamespace) -> None:
        namespace.define("cb_1", lambda p: None)
        body = 'cb_1(["q", ["a (b)", "c)"]])'
        assert find_invocation(body, namespace) == ("cb_1", ["q", ["a (b)", "c)"]])

    def test_unbound_name_is_ignored(self, namespace: CallbackNamespace) -> None:
        assert find_invocation('other(["q"])', namespace) is None

    def test_trailing_statements_after_call(self, namespace: CallbackNamespace) -> None:
        namespace.define("cb_1", lambda p: None)
        body = 'cb_1(["q", ["a"]]);track({"x": 1});'
        assert find_invocation(body, namespace) == ("cb_1", ["q", ["a"]])

    def test_brackets_inside_strings_are_skipped(
        self, namespace: CallbackNamespace
    ) -> None:
        namespace.define("cb_1", lambda p: None)
        body = "cb_1([\"q\", [\"a)\", \"b]\", \"it's\"]]); done()"
        assert find_invocation(body, namespace) == ("cb_1", ["q", ["a)", "b]", "it's"]])

    def test_unterminated_call(self, namespace: CallbackNamespace) -> None:
        namespace.define("cb_1", lambda p: None)
        with pytest.raises(ValueError):
            find_invocation("cb_1(", namespace)


class TestScriptHost:
    @pytest.mark.asyncio()
    async def test_executes_bound_callback(self, namespace: CallbackNamespace) -> None:
        received: list[Any] = []
        namespace.define("cb_1", received.append)
        host = _make_host(namespace, body='cb_1({"s": ["x"]});')

        script = ScriptElement(src="https://engine.test/su?cb=cb_1")
        host.append(script)
        assert host.contains(script)
        await _settle(script)

        assert received == [{"s": ["x"]}]

    @pytest.mark.asyncio()
    async def test_append_without_src_raises(self, namespace: CallbackNamespace) -> None:
        host = _make_host(namespace)
        with pytest.raises(ValueError):
            host.append(ScriptElement())

    @pytest.mark.asyncio()
    async def test_http_error_fires_on_error(self, namespace: CallbackNamespace) -> None:
        errors: list[str] = []
        host = _make_host(namespace, status=404)
        script = ScriptElement(
            src="https://engine.test/missing", on_error=lambda: errors.append("x")
        )
        host.append(script)
        await _settle(script)
        assert errors == ["x"]

    @pytest.mark.asyncio()
    async def test_body_without_invocation_is_inert(
        self, namespace: CallbackNamespace
    ) -> None:
        received: list[Any] = []
        errors: list[str] = []
        namespace.define("cb_1", received.append)
        host = _make_host(namespace, body="/* nothing here */")
        script = ScriptElement(
            src="https://engine.test/su", on_error=lambda: errors.append("x")
        )
        host.append(script)
        await _settle(script)
        assert received == []
        assert errors == []

    @pytest.mark.asyncio()
    async def test_undecodable_argument_is_inert(
        self, namespace: CallbackNamespace
    ) -> None:
        received: list[Any] = []
        namespace.define("cb_1", received.append)
        host = _make_host(namespace, body="cb_1(<html>)")
        script = ScriptElement(src="https://engine.test/su")
        host.append(script)
        await _settle(script)
        assert received == []

    @pytest.mark.asyncio()
    async def test_removed_script_never_executes(
        self, namespace: CallbackNamespace
    ) -> None:
        received: list[Any] = []
        namespace.define("cb_1", received.append)
        host = _make_host(namespace, body='cb_1(["q", []])')
        script = ScriptElement(src="https://engine.test/su")
        host.append(script)
        task = script._load_task
        host.remove(script)

        assert not host.contains(script)
        assert task is not None
        await asyncio.gather(task, return_exceptions=True)
        assert received == []

    @pytest.mark.asyncio()
    async def test_remove_is_idempotent(self, namespace: CallbackNamespace) -> None:
        host = _make_host(namespace, hang=True)
        script = ScriptElement(src="https://engine.test/su")
        host.append(script)
        host.remove(script)
        host.remove(script)
        assert host.attached_count == 0

    @pytest.mark.asyncio()
    async def test_aclose_detaches_everything(
        self, namespace: CallbackNamespace
    ) -> None:
        host = _make_host(namespace, hang=True)
        scripts = [ScriptElement(src=f"https://engine.test/{i}") for i in range(3)]
        for script in scripts:
            host.append(script)
        await asyncio.sleep(0)
        assert host.attached_count == 3

        await host.aclose()

        assert host.attached_count == 0
        assert all(s._load_task is None for s in scripts)

    @pytest.mark.asyncio()
    async def test_aclose_waits_for_previously_removed_loads(
        self, namespace: CallbackNamespace
    ) -> None:
        host = _make_host(namespace, hang=True)
        script = ScriptElement(src="https://engine.test/su")
        host.append(script)
        await asyncio.sleep(0)
        task = script._load_task
        assert task is not None

        host.remove(script)
        assert not task.done()

        await host.aclose()

        assert task.done()
