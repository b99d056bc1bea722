# app.py - Adaptive Learning tool server v1.0.0
# - MCP-style tool listing / invocation over HTTP
# - VARK questionnaire and scoring endpoints

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI

import mcp_tools
from engines.llm_client import ClientConfig
from engines.vark import build_vark_preference, calculate_vark_scores
from schemas import CallToolRequest, VarkScoreRequest
from vark_questions import VARK_QUESTIONNAIRE

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def _lifespan(app: FastAPI):
    try:
        # Validate environment variables first
        from env_validation import validate_environment
        validate_environment()

        config = ClientConfig.from_env()
        logger.info(
            "Tool server ready | model: %s | API key configured: %s",
            config.model,
            bool(config.api_key),
        )
        yield
    except Exception as e:
        logger.error("Failed to initialize application: %s", str(e), exc_info=True)
        raise


app = FastAPI(title="Adaptive Learning Tools", version=APP_VERSION, lifespan=_lifespan)
# Tests and embedders may inject a client with an async ``send_message_for_json``.
app.state.llm_client = None


@app.get("/health")
def health() -> Dict[str, Any]:
    config = ClientConfig.from_env()
    return {
        "status": "ok",
        "version": APP_VERSION,
        "model": config.model,
        "api_key_configured": bool(config.api_key),
    }


@app.get("/tools")
def list_tools() -> Dict[str, Any]:
    return {"tools": mcp_tools.TOOLS}


@app.post("/tools/call")
async def call_tool(req: CallToolRequest) -> Dict[str, Any]:
    result = await mcp_tools.call_tool(req.name, req.arguments, client=app.state.llm_client)
    if result["isError"]:
        logger.warning("Tool call %s returned an error", req.name)
    return result


@app.get("/vark/questions")
def vark_questions() -> Dict[str, Any]:
    return VARK_QUESTIONNAIRE.as_payload()


@app.post("/vark/score")
def vark_score(req: VarkScoreRequest) -> Dict[str, Any]:
    result = calculate_vark_scores(req.answers)
    style = VARK_QUESTIONNAIRE.style(result["primary_style"])
    return {
        "result": result,
        "preference": build_vark_preference(result),
        "style": style.as_dict() if style else None,
        "answered": len(req.answers),
        "total_questions": len(VARK_QUESTIONNAIRE),
    }
