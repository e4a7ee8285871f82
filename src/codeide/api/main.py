"""
FastAPI application for the CodeIDE backend.

This module configures the FastAPI application and registers the
interactive WebSocket endpoint, the batch ``/run`` proxy to Judge0, the
static language list and the health check.  CORS is open so browser
editors served from any origin can connect.
"""

from __future__ import annotations

import logging
from typing import Dict, List

import httpx
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Config, Toolchain
from ..models import LANGUAGES, Language, RunRequest
from ..session import Session
from .judge0 import Judge0Client, error_details


logger = logging.getLogger("codeide")

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[codeide] %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


config = Config.from_env()

logger.setLevel(config.log_level)

toolchain = Toolchain.discover(config)

logger.info(
    "Loaded config: port=%s, workspace_root=%s, judge0_url=%s, run_timeout=%s",
    config.port,
    config.workspace_root,
    config.judge0_url,
    config.run_timeout_secs,
)
logger.info(
    "Toolchain: python=%s, javac=%s, java=%s, gcc=%s, g++=%s, stdbuf=%s",
    toolchain.python,
    toolchain.javac,
    toolchain.java,
    toolchain.gcc,
    toolchain.gxx,
    toolchain.stdbuf,
)
if not config.rapid_api_key:
    logger.warning("RAPID_API_KEY is not set; /run requests will be rejected upstream")

judge0 = Judge0Client(
    base_url=config.judge0_url,
    api_key=config.rapid_api_key,
    host=config.judge0_host,
    timeout=config.run_timeout_secs,
)


app = FastAPI(title="CodeIDE Backend", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log every HTTP request and the resulting status code."""
    path = request.url.path
    method = request.method
    client = getattr(request.client, "host", "unknown")

    logger.info("Incoming request: %s %s from %s", method, path, client)
    response = await call_next(request)
    logger.info("Response: %s %s -> %s", method, path, response.status_code)
    return response


@app.get("/health")
async def health() -> Dict[str, str]:
    """Return a simple health check response."""
    return {"status": "OK", "message": "CodeIDE Backend is running"}


@app.get("/languages", response_model=List[Language])
async def languages() -> List[Language]:
    """Languages accepted by ``/run``, with their Judge0 ids."""
    return LANGUAGES


@app.post("/run")
async def run(req: RunRequest):
    """Execute code non-interactively on Judge0 and return its result."""
    if not req.source_code:
        return JSONResponse(status_code=400, content={"error": "Source code is required"})
    if not req.language_id:
        return JSONResponse(status_code=400, content={"error": "Language ID is required"})

    logger.info("[/run] Executing language %s code...", req.language_id)
    try:
        result = await judge0.submit(req.source_code, req.language_id, req.stdin or "")
    except httpx.TimeoutException:
        logger.error("[/run] Judge0 request timed out")
        return JSONResponse(
            status_code=408,
            content={"error": "Code execution timed out. Please check your code for infinite loops."},
        )
    except httpx.HTTPStatusError as exc:
        logger.error("[/run] Judge0 returned %s", exc.response.status_code)
        return JSONResponse(
            status_code=500,
            content={"error": "Code execution failed", "details": error_details(exc.response)},
        )
    except httpx.HTTPError as exc:
        logger.error("[/run] Error contacting Judge0: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to connect to code execution service", "details": str(exc)},
        )

    status = result.get("status") if isinstance(result, dict) else None
    logger.info("[/run] Execution completed: %s", status)
    return result


@app.websocket("/ws")
async def interactive_session(websocket: WebSocket) -> None:
    """Run one interactive program for the lifetime of the connection."""
    await websocket.accept()
    client = getattr(websocket.client, "host", "unknown")
    logger.info("[/ws] Connection opened from %s", client)

    session = Session(
        send=websocket.send_json,
        toolchain=toolchain,
        workspace_root=config.workspace_root,
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await session.handle_message(raw)
    finally:
        await session.close()
        logger.info("[/ws] Connection from %s closed", client)
