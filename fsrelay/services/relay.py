"""
Capability-aware script relay.

Loads a script into a hosted execution context. The context is checked for
direct module loading support; if it has it, a small loader snippet runs
there, otherwise the script path is handed over the context's channel for
it to load out of band.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from fsrelay.schemas.relay import InjectResult, InjectScriptMessage

logger = logging.getLogger(__name__)

INJECT_SCRIPT_CHANNEL = "--bd-inject-script"
CAPABILITY_CHECK = "typeof require !== 'undefined'"

_JS_STRING_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class ExecutionContext(Protocol):
    """A hosted context that can run code and receive channel messages"""

    async def execute(self, code: str) -> Any:  # pragma: no cover - structural typing only
        ...

    async def send(self, channel: str, message: Dict[str, Any]) -> None:  # pragma: no cover
        ...


def escape_js_string(value: str) -> str:
    """
    Escape value for interpolation inside a double-quoted JS string literal.

    Backslashes go first so the escapes added for quotes are not doubled.
    """
    for raw, escaped in _JS_STRING_ESCAPES:
        value = value.replace(raw, escaped)
    return value


def build_loader_snippet(script_path: str, variable: Optional[str] = None) -> str:
    """
    Build the snippet that loads script_path inside a capable context.

    With a variable name the module export is bound on window, otherwise the
    script is loaded for its side effects only.
    """
    escaped_path = escape_js_string(script_path)
    if variable:
        escaped_variable = escape_js_string(variable)
        return f'window["{escaped_variable}"] = require("{escaped_path}");'
    return f'require("{escaped_path}");'


async def execute_script(context: ExecutionContext, code: str) -> Any:
    return await context.execute(code)


class ScriptRelay:
    """Injects scripts into execution contexts"""

    def __init__(self, channel: str = INJECT_SCRIPT_CHANNEL):
        self.channel = channel

    async def has_module_loading(self, context: ExecutionContext) -> bool:
        """Run the capability check inside context"""
        return bool(await context.execute(CAPABILITY_CHECK))

    async def inject_script(
        self,
        context: Optional[ExecutionContext],
        script_path: str,
        variable: Optional[str] = None,
    ) -> Optional[InjectResult]:
        """
        Load script_path into context.

        Args:
            context: Target context; nothing happens when it is None
            script_path: Path of the script to load
            variable: Optional global name to bind the script's export under

        Returns:
            InjectResult describing the strategy used, or None without a context
        """
        if context is None:
            return None

        if not await self.has_module_loading(context):
            message = InjectScriptMessage(script=script_path, variable=variable)
            logger.info(f"Relaying {script_path} over {self.channel}")
            await context.send(self.channel, message.model_dump())
            return InjectResult(outcome="relayed")

        snippet = build_loader_snippet(script_path, variable)
        logger.info(f"Executing loader for {script_path}")
        result = await context.execute(snippet)
        return InjectResult(outcome="executed", snippet=snippet, result=result)


# Global script relay instance
script_relay = ScriptRelay()
