import io
import json
import logging
import os
import re
import time
import uuid
from contextlib import asynccontextmanager
from typing import Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from fastmcp import FastMCP

load_dotenv()

from advice import build_advice
from agent import WalletInsightsAgent
from chains import SUPPORTED_CHAINS
from config import load_settings
from errors import ConfigurationError, InvalidAddress, NoChainsReachable, WalletAnalyzerError
from exports import to_csv, to_excel, to_json, to_text
from models import AnalyzeRequest, AnalyzeResponse, HealthResponse, StakingAdvice, WalletAnalysis
from utils import short_address
from wallet_analyzer import WalletAnalyzer

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
_ADDRESS_IN_TEXT = re.compile(r"0x[a-fA-F0-9]{40}")


# ── MCP Server (mounted at /mcp) ─────────────────────────────────────────────

mcp = FastMCP(
    name="Staking Wallet Analyzer Agent",
    instructions=(
        "Analyzes EVM wallets across Ethereum, Base and Arbitrum (or Sepolia and Base Sepolia "
        "in testnet mode) and recommends how much to stake, where, and why. Provide a public "
        "0x address; mainnet and testnet are never mixed in one analysis."
    ),
)


@mcp.tool()
async def analyze_wallet_mcp(address: str, testnet_only: bool = False) -> dict:
    """
    Analyze an EVM wallet and produce staking recommendations.

    Args:
        address:      Public EVM wallet address (0x + 40 hex chars).
        testnet_only: Analyze Sepolia / Base Sepolia instead of mainnet chains.

    Returns:
        Wallet analysis, personalized advice and (if configured) AI insights.
    """
    analysis = await get_analyzer().analyze(address, testnet_only)
    advice = build_advice(analysis)
    return {
        "analysis": analysis.model_dump(mode="json"),
        "advice": advice.model_dump(mode="json"),
        "ai_insights": _insights(analysis, advice),
    }


# ── Lifespan ──────────────────────────────────────────────────────────────────

analyzer: WalletAnalyzer | None = None
insights_agent: WalletInsightsAgent | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global analyzer, insights_agent
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    analyzer = WalletAnalyzer(settings)
    try:
        insights_agent = WalletInsightsAgent()
    except (ValueError, EnvironmentError, ImportError) as e:
        logger.warning("AI insights disabled: %s", e)
        insights_agent = None
    logger.info("Staking Wallet Analyzer Agent ready (%d chains registered)", len(SUPPORTED_CHAINS))
    yield
    logger.info("Shutting down.")


def get_analyzer() -> WalletAnalyzer:
    if analyzer is None:
        raise ConfigurationError("Wallet analyzer is not initialized")
    return analyzer


def _insights(analysis: WalletAnalysis, advice: StakingAdvice) -> Optional[str]:
    if not insights_agent:
        return None
    try:
        return insights_agent.generate_insights(analysis, advice)
    except Exception as e:
        logger.warning("AI insights generation failed for %s: %s", short_address(analysis.address), e)
        return f"AI insights generation failed: {e}"


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Staking Wallet Analyzer Agent",
    description=(
        "EVM wallet analysis and staking recommendation agent. Supports Ethereum, Base and "
        "Arbitrum on mainnet, and Sepolia and Base Sepolia in testnet mode.\n\n"
        "Provide a public wallet address and receive balances, a risk profile, a staking "
        "strategy and concrete staking recommendations with AI-powered explanations.\n\n"
        "Exposes **REST** (`/analyze`), **MCP** (`/mcp`), and **A2A** (`/a2a`) endpoints."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/mcp", mcp.http_app())


# ── Error mapping ─────────────────────────────────────────────────────────────


def _error_response(status_code: int, address: str, error: Exception) -> JSONResponse:
    body = AnalyzeResponse(success=False, address=address, error=str(error))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(InvalidAddress)
async def invalid_address_handler(request: Request, exc: InvalidAddress):
    return _error_response(422, exc.address, exc)


@app.exception_handler(NoChainsReachable)
async def no_chains_handler(request: Request, exc: NoChainsReachable):
    return _error_response(503, "", exc)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return _error_response(500, "", exc)


# ── Info ──────────────────────────────────────────────────────────────────────


@app.get("/", tags=["Info"])
def root(request: Request):
    base = str(request.base_url).rstrip("/")
    return {
        "name": "Staking Wallet Analyzer Agent",
        "version": VERSION,
        "supported_chains": {
            "mainnet": [c.name for c in SUPPORTED_CHAINS.values() if not c.is_testnet],
            "testnet": [c.name for c in SUPPORTED_CHAINS.values() if c.is_testnet],
        },
        "endpoints": {
            "docs": f"{base}/docs",
            "health": f"{base}/health",
            "analyze": f"{base}/analyze",
            "a2a_card": f"{base}/.well-known/agent.json",
            "a2a_tasks": f"{base}/a2a",
            "mcp": f"{base}/mcp",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
def health():
    return HealthResponse(status="ok", version=VERSION)


# ── Core: Analyze Wallet ──────────────────────────────────────────────────────


@app.post("/analyze", tags=["Wallet"])
async def analyze_wallet(
    req: AnalyzeRequest,
    format: Literal["json", "csv", "excel", "text"] = Query(
        default="json",
        description="Output format: json (default) | csv | excel | text",
    ),
    include_insights: bool = Query(
        default=True,
        description="Include AI-powered insights in the report",
    ),
):
    """
    Analyze an EVM wallet address and recommend staking positions.

    - **Mainnet** (default): Ethereum, Base, Arbitrum
    - **Testnet** (`testnet_only=true`): Sepolia, Base Sepolia

    Chains are queried concurrently; a chain that cannot be reached is listed in
    `chains_unavailable` instead of failing the request.
    """
    start = time.time()

    analysis = await get_analyzer().analyze(req.address, req.testnet_only)
    advice = build_advice(analysis)
    ai_insights = _insights(analysis, advice) if include_insights else None

    elapsed = int((time.time() - start) * 1000)
    short = analysis.address[:12]

    if format == "json":
        return AnalyzeResponse(
            success=True, address=analysis.address, analysis=analysis, advice=advice,
            ai_insights=ai_insights, processing_time_ms=elapsed,
        )

    if format == "text":
        return PlainTextResponse(to_text(analysis, advice, ai_insights))

    if format == "csv":
        return StreamingResponse(
            content=io.BytesIO(to_csv(analysis, ai_insights)),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="wallet_{short}_staking.csv"'
            },
        )

    return StreamingResponse(
        content=io.BytesIO(to_excel(analysis)),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="wallet_{short}_staking.xlsx"'
        },
    )


# ── A2A: Agent Card ──────────────────────────────────────────────────────────


@app.get("/.well-known/agent.json", tags=["A2A"])
def agent_card(request: Request):
    """Google A2A Agent Card: this agent's identity and capabilities."""
    base = str(request.base_url).rstrip("/")
    return JSONResponse({
        "name": "Staking Wallet Analyzer Agent",
        "description": (
            "EVM wallet analyzer and staking advisor. Provide a public 0x address and receive "
            "balances, a risk profile, and concrete staking recommendations with reasoning."
        ),
        "url": base,
        "version": VERSION,
        "provider": {
            "organization": "AI Agents Marketplace",
            "url": base,
        },
        "capabilities": {
            "streaming": False,
            "pushNotifications": False,
            "stateTransitionHistory": False,
        },
        "authentication": {"schemes": []},
        "defaultInputModes": ["application/json"],
        "defaultOutputModes": ["application/json"],
        "skills": [
            {
                "id": "analyze_wallet",
                "name": "Analyze Wallet for Staking",
                "description": (
                    "Analyze a public EVM wallet on Ethereum, Base and Arbitrum (or Sepolia "
                    "and Base Sepolia). Returns balances, diversification and risk scores, a "
                    "staking strategy, and per-asset staking recommendations."
                ),
                "tags": [
                    "web3", "blockchain", "wallet", "staking",
                    "defi", "ethereum", "base", "arbitrum", "testnet",
                ],
                "examples": [
                    "Analyze this wallet: 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
                    "How much of 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045 should I stake?",
                    "Analyze testnet wallet 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
                ],
                "inputModes": ["application/json"],
                "outputModes": ["application/json"],
            }
        ],
    })


# ── A2A: JSON-RPC Task Endpoint ──────────────────────────────────────────────


@app.post("/a2a", tags=["A2A"])
async def a2a_endpoint(request: Request):
    """
    Google A2A Protocol: JSON-RPC 2.0 task endpoint.

    Send a task with a wallet address inside a text part and receive the staking
    analysis. Mentioning "testnet" in the text analyzes testnet chains.

    Example request:
    ```json
    {
      "jsonrpc": "2.0",
      "method": "tasks/send",
      "id": "1",
      "params": {
        "id": "task-uuid",
        "message": {
          "role": "user",
          "parts": [{"type": "text", "text": "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"}]
        }
      }
    }
    ```
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({
            "jsonrpc": "2.0", "id": None,
            "error": {"code": -32700, "message": "Parse error"},
        })

    rpc_id = body.get("id")
    method = body.get("method", "")
    params = body.get("params", {})

    def rpc_error(code: int, message: str):
        return JSONResponse({
            "jsonrpc": "2.0", "id": rpc_id,
            "error": {"code": code, "message": message},
        })

    if method != "tasks/send":
        return rpc_error(-32601, f"Method '{method}' not supported. Use 'tasks/send'.")

    parts = params.get("message", {}).get("parts", [])
    text_part = next(
        (p.get("text", "") for p in parts if p.get("type") == "text"), None
    )

    if not text_part:
        return rpc_error(
            -32602,
            "No text part found. Send a 'text' part containing the wallet address.",
        )

    match = _ADDRESS_IN_TEXT.search(text_part)
    address = match.group(0) if match else text_part.strip()
    testnet_only = "testnet" in text_part.lower()

    try:
        analysis = await get_analyzer().analyze(address, testnet_only)
    except InvalidAddress as e:
        return rpc_error(-32602, str(e))
    except WalletAnalyzerError as e:
        return rpc_error(-32603, f"Analysis failed: {e}")

    advice = build_advice(analysis)
    ai_insights = _insights(analysis, advice)
    task_id = params.get("id", str(uuid.uuid4()))

    parts_out = [{"type": "data", "data": json.loads(to_json(analysis, advice))}]
    if ai_insights:
        parts_out.append({"type": "text", "text": ai_insights})

    return JSONResponse({
        "jsonrpc": "2.0",
        "id": rpc_id,
        "result": {
            "id": task_id,
            "status": {
                "state": "completed",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            },
            "artifacts": [
                {
                    "name": "staking_analysis",
                    "description": f"Staking analysis for {address}",
                    "parts": parts_out,
                }
            ],
        },
    })


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
