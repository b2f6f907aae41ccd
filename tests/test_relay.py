"""
Tests for the capability-aware script relay.
"""

import json

import pytest

from fsrelay.services.relay import (
    CAPABILITY_CHECK,
    INJECT_SCRIPT_CHANNEL,
    ScriptRelay,
    build_loader_snippet,
    escape_js_string,
    execute_script,
)


class FakeContext:
    """Execution context that records what it is asked to do"""

    def __init__(self, can_require: bool, result=None):
        self.can_require = can_require
        self.result = result
        self.executed = []
        self.sent = []

    async def execute(self, code: str):
        self.executed.append(code)
        if code == CAPABILITY_CHECK:
            return self.can_require
        return self.result

    async def send(self, channel: str, message: dict):
        self.sent.append((channel, message))


@pytest.fixture
def relay():
    return ScriptRelay()


def literal_inside(snippet: str, opener: str) -> str:
    """Decode the string literal that follows opener in snippet"""
    start = snippet.index(opener) + len(opener) - 1
    end = start + 1
    while snippet[end] != '"':
        end += 2 if snippet[end] == "\\" else 1
    return json.loads(snippet[start:end + 1])


class TestEscaping:
    """Tests for string literal escaping"""

    def test_escape_backslash_and_quote(self):
        assert escape_js_string(r'C:\plugins\"evil".js') == r'C:\\plugins\\\"evil\".js'

    def test_escape_line_terminators(self):
        assert escape_js_string("a\nb\rc\u2028d") == "a\\nb\\rc\\u2028d"

    def test_plain_path_unchanged(self):
        assert escape_js_string("/plugins/theme.js") == "/plugins/theme.js"

    def test_snippet_without_variable(self):
        assert build_loader_snippet("/plugins/a.js") == 'require("/plugins/a.js");'

    def test_snippet_with_variable(self):
        snippet = build_loader_snippet("/plugins/a.js", "myPlugin")
        assert snippet == 'window["myPlugin"] = require("/plugins/a.js");'

    def test_path_cannot_break_out_of_literal(self):
        """A hostile path stays inside the require() string literal"""
        hostile = '"); process.exit(1); require("'
        snippet = build_loader_snippet(hostile)

        assert literal_inside(snippet, 'require("') == hostile
        assert snippet.endswith('");')

    def test_variable_cannot_break_out_of_literal(self):
        hostile = 'x"] = 1; evil(); window["y\\'
        snippet = build_loader_snippet("/a.js", hostile)

        assert literal_inside(snippet, 'window["') == hostile
        assert literal_inside(snippet, 'require("') == "/a.js"


class TestInjectScript:
    """Tests for ScriptRelay.inject_script"""

    @pytest.mark.asyncio
    async def test_no_context(self, relay):
        assert await relay.inject_script(None, "/plugins/a.js") is None

    @pytest.mark.asyncio
    async def test_relays_without_capability(self, relay):
        """Contexts without module loading get the raw path over the channel"""
        context = FakeContext(can_require=False)

        result = await relay.inject_script(context, r'C:\plugins\"a".js', "plugin")

        assert result.outcome == "relayed"
        assert context.executed == [CAPABILITY_CHECK]
        assert context.sent == [
            (INJECT_SCRIPT_CHANNEL, {"script": r'C:\plugins\"a".js', "variable": "plugin"})
        ]

    @pytest.mark.asyncio
    async def test_relay_message_without_variable(self, relay):
        context = FakeContext(can_require=False)

        await relay.inject_script(context, "/plugins/a.js")

        assert context.sent == [(INJECT_SCRIPT_CHANNEL, {"script": "/plugins/a.js", "variable": None})]

    @pytest.mark.asyncio
    async def test_executes_with_variable(self, relay):
        context = FakeContext(can_require=True, result={"loaded": True})

        result = await relay.inject_script(context, "/plugins/a.js", "myPlugin")

        assert result.outcome == "executed"
        assert result.result == {"loaded": True}
        assert context.executed == [
            CAPABILITY_CHECK,
            'window["myPlugin"] = require("/plugins/a.js");',
        ]
        assert context.sent == []

    @pytest.mark.asyncio
    async def test_executes_for_side_effect(self, relay):
        context = FakeContext(can_require=True)

        result = await relay.inject_script(context, "/plugins/a.js")

        assert result.snippet == 'require("/plugins/a.js");'
        assert context.executed[-1] == 'require("/plugins/a.js");'

    @pytest.mark.asyncio
    async def test_executes_escaped_path(self, relay):
        context = FakeContext(can_require=True)

        await relay.inject_script(context, r"C:\plugins\a.js")

        assert context.executed[-1] == r'require("C:\\plugins\\a.js");'

    @pytest.mark.asyncio
    async def test_custom_channel(self):
        relay = ScriptRelay(channel="load-script")
        context = FakeContext(can_require=False)

        await relay.inject_script(context, "/a.js")

        assert context.sent[0][0] == "load-script"

    @pytest.mark.asyncio
    async def test_execute_script(self):
        context = FakeContext(can_require=True, result=42)
        assert await execute_script(context, "21 * 2") == 42
        assert context.executed == ["21 * 2"]
