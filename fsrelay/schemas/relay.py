from typing import Any, List, Literal, Optional
from pydantic import BaseModel


class InjectScriptMessage(BaseModel):
    """Payload relayed to a context that cannot load modules itself"""
    script: str
    variable: Optional[str] = None


class InjectResult(BaseModel):
    """How a script reached one execution context"""
    outcome: Literal["relayed", "executed"]
    snippet: Optional[str] = None
    result: Any = None


class InjectRequest(BaseModel):
    """Request to inject a script into hosted contexts"""
    script: str
    variable: Optional[str] = None
    context_id: Optional[str] = None


class ContextInjectResult(BaseModel):
    """Per-context result of an inject request"""
    context_id: str
    ok: bool
    result: Optional[InjectResult] = None
    error: Optional[str] = None


class InjectResponse(BaseModel):
    results: List[ContextInjectResult]


class ContextList(BaseModel):
    contexts: List[str]
