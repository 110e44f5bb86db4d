"""FastAPI app exposing the agent over HTTP.

``POST /api/agent`` takes ``{"text": ..., "history": [...]}`` and returns
``{"history": [...]}`` - the whole updated transcript, so the caller can
persist or render it.  The server keeps no per-conversation state.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from web3_agent.config import Web3AgentConfig
from web3_agent.core.factory import AgentComponents, build_components
from web3_agent.core.history import ConversationLog
from web3_agent.errors import UnknownTokenError

logger = logging.getLogger("web3_agent.server")


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


def create_app(components: AgentComponents) -> FastAPI:
    """Build the API around an already-wired agent."""
    app = FastAPI(title="web3-agent")
    agent = components.agent

    # ------------------------------------------------------------------
    # Agent
    # ------------------------------------------------------------------

    @app.post("/api/agent")
    async def api_agent(body: dict):
        text = body.get("text")
        history = body.get("history")
        if not isinstance(text, str) or not text.strip():
            return _bad_request('Missing or invalid "text" field in request body')
        if not isinstance(history, list):
            return _bad_request('Missing or invalid "history" array in request body')

        try:
            log = ConversationLog.from_dicts(history)
        except ValueError as e:
            return _bad_request(f"Invalid history: {e}")

        logger.info(f'Received text: "{text}" (history length: {len(log)})')
        updated = await agent.process_input(text, log)

        logger.info(f"Returning updated history length: {len(updated)}")
        return {"history": updated.to_dicts()}

    # ------------------------------------------------------------------
    # Wallet API (read-only)
    # ------------------------------------------------------------------

    @app.get("/api/wallet/address")
    async def api_wallet_address():
        addr = components.self_address
        if addr is None:
            return {"address": None, "error": "No wallet configured"}
        return {"address": addr, "canSign": components.signer is not None}

    @app.get("/api/address-book")
    async def api_address_book():
        return [
            {"name": e.name, "address": e.address} for e in components.resolver.directory
        ]

    @app.get("/api/tokens")
    async def api_tokens():
        out = {}
        for symbol in components.tokens.symbols():
            try:
                out[symbol] = components.tokens.address_of(symbol)
            except UnknownTokenError:
                out[symbol] = None
        return out

    return app


# ------------------------------------------------------------------
# Runner
# ------------------------------------------------------------------


def run_server(config: Web3AgentConfig, host: str | None = None, port: int | None = None) -> None:
    components = build_components(config)
    uvicorn.run(
        create_app(components),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level="info",
    )
