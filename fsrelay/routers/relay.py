import json
import logging
from typing import List

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from fsrelay.config import get_settings
from fsrelay.errors import ScriptExecutionError
from fsrelay.schemas.relay import (
    ContextInjectResult,
    ContextList,
    InjectRequest,
    InjectResponse,
)
from fsrelay.services.relay import script_relay
from fsrelay.websocket import WebSocketContext, manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/relay", tags=["relay"])
ws_router = APIRouter(tags=["relay"])


@ws_router.websocket("/ws")
async def context_channel(websocket: WebSocket):
    """
    Channel for hosted execution contexts.

    Replies to execute requests are routed back to the waiting caller.
    """
    context = await manager.connect(websocket, timeout=get_settings().execute_timeout)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Malformed message from {context.context_id}")
                continue
            if isinstance(message, dict):
                context.handle_message(message)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(context)


@router.get("/contexts", response_model=ContextList)
async def list_contexts():
    """List connected execution contexts"""
    return ContextList(contexts=list(manager.active_connections))


@router.post("/inject", response_model=InjectResponse)
async def inject(request: InjectRequest):
    """
    Inject a script into one context, or every connected context
    """
    if request.context_id:
        context = manager.get(request.context_id)
        if context is None:
            raise HTTPException(status_code=404, detail="Context not found")
        targets: List[WebSocketContext] = [context]
    else:
        targets = list(manager.active_connections.values())
        if not targets:
            raise HTTPException(status_code=404, detail="No execution contexts connected")

    results: List[ContextInjectResult] = []
    failed: List[WebSocketContext] = []
    for context in targets:
        try:
            outcome = await script_relay.inject_script(context, request.script, request.variable)
            results.append(ContextInjectResult(context_id=context.context_id, ok=True, result=outcome))
        except ScriptExecutionError as e:
            # the context answered; keep it connected
            logger.warning(f"Script failed in {context.context_id}: {e}")
            results.append(ContextInjectResult(context_id=context.context_id, ok=False, error=str(e)))
        except Exception as e:
            logger.error(f"Inject into {context.context_id} failed: {e}")
            results.append(ContextInjectResult(context_id=context.context_id, ok=False, error=str(e)))
            failed.append(context)

    # Drop contexts that could not be reached
    for context in failed:
        await manager.drop(context)

    return InjectResponse(results=results)
