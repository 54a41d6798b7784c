"""
TraderBot – API Routes (FastAPI)
==================================
Superficie HTTP de control del bot.

Endpoints disponibles:
  GET  /api/health                    → health check
  GET  /api/bot/status                → estado del bot, martingala y pipeline
  POST /api/bot/start                 → arrancar el bot
  POST /api/bot/stop                  → detener el bot
  GET  /api/positions                 → historial de posiciones
  GET  /api/candles/{symbol}          → últimas N velas almacenadas
  GET  /api/candles/{symbol}/range    → velas en [start, end]
  GET  /api/candles/{symbol}/latest   → vela más reciente (404 si no hay)
  GET  /api/wallet/balances           → balances por activo
  GET  /api/wallet/balance/{asset}    → balance de un activo

start/stop con el bot ya en ese estado responden 200 con outcome
ALREADY_RUNNING / ALREADY_STOPPED: no son errores.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query

from traderbot.application.dto.position_dto import BalanceSummaryDTO, PositionResponseDTO
from traderbot.domain.exceptions.domain_errors import DomainError
from traderbot.presentation.api.schemas import (
    BalanceResponse,
    BalancesResponse,
    BotControlResponse,
    BotStatusResponse,
    CandleSchema,
    CandlesResponse,
    HealthResponse,
    PositionsResponse,
)
from traderbot.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_lifecycle = None
_engine = None
_ledger = None
_candle_repository = None
_balance_query = None
_balance_assets: list[str] = []


def init_routes(
    lifecycle,
    engine,
    ledger,
    candle_repository,
    balance_query,
    balance_assets: list[str] | None = None,
) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _lifecycle, _engine, _ledger, _candle_repository, _balance_query, _balance_assets
    _lifecycle = lifecycle
    _engine = engine
    _ledger = ledger
    _candle_repository = candle_repository
    _balance_query = balance_query
    _balance_assets = list(balance_assets or [])


def _require(component, name: str):
    if component is None:
        raise HTTPException(status_code=503, detail=f"{name} not ready")
    return component


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ─── Salud / estado ────────────────────────────────────────────────────

@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> dict:
    """Health check para monitoreo."""
    return {
        "status": "ok",
        "service": "traderbot",
        "bot_status": _lifecycle.status.value if _lifecycle else "unknown",
    }


@router.get("/api/bot/status", response_model=BotStatusResponse)
async def bot_status() -> dict:
    lifecycle = _require(_lifecycle, "bot")
    engine = _require(_engine, "engine")
    ledger = _require(_ledger, "ledger")

    snapshot = lifecycle.snapshot()
    position = await ledger.get_open_position(engine.symbol)
    snapshot["martingale"] = engine.martingale_state.to_dict()
    snapshot["open_position"] = PositionResponseDTO.from_entity(position).to_dict() if position else None
    return snapshot


# ─── Control ───────────────────────────────────────────────────────────

@router.post("/api/bot/start", response_model=BotControlResponse)
async def start_bot() -> dict:
    lifecycle = _require(_lifecycle, "bot")
    try:
        result = await lifecycle.start()
    except DomainError as exc:
        logger.error("Arranque del bot falló: %s", exc.message)
        raise HTTPException(status_code=502, detail=exc.to_dict()) from exc
    except Exception as exc:
        logger.error("Arranque del bot falló: %s", exc)
        raise HTTPException(status_code=502, detail={"error": "START_FAILED", "message": str(exc)}) from exc
    return result.to_dict()


@router.post("/api/bot/stop", response_model=BotControlResponse)
async def stop_bot() -> dict:
    lifecycle = _require(_lifecycle, "bot")
    result = await lifecycle.stop()
    return result.to_dict()


# ─── Datos ─────────────────────────────────────────────────────────────

@router.get("/api/positions", response_model=PositionsResponse)
async def get_positions(
    symbol: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
) -> dict:
    ledger = _require(_ledger, "ledger")
    positions = await ledger.list_all(symbol=symbol, limit=limit)
    return {
        "count": len(positions),
        "positions": [PositionResponseDTO.from_entity(p).to_dict() for p in positions],
    }


@router.get("/api/candles/{symbol}", response_model=CandlesResponse)
async def get_candles(symbol: str, count: int = Query(default=50, ge=1, le=500)) -> dict:
    """Últimas N velas almacenadas de un símbolo."""
    repository = _require(_candle_repository, "candle store")
    candles = await repository.get_latest(symbol.upper(), limit=count)
    return {
        "symbol": symbol.upper(),
        "count": len(candles),
        "candles": [c.to_dict() for c in candles],
    }


@router.get("/api/candles/{symbol}/range", response_model=CandlesResponse)
async def get_candles_range(
    symbol: str,
    start: datetime = Query(...),
    end: datetime = Query(...),
) -> dict:
    """Velas de un símbolo en [start, end]. Fechas sin zona se asumen UTC."""
    repository = _require(_candle_repository, "candle store")
    start, end = _as_utc(start), _as_utc(end)
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    candles = await repository.get_range(symbol.upper(), start, end)
    return {
        "symbol": symbol.upper(),
        "count": len(candles),
        "candles": [c.to_dict() for c in candles],
    }


@router.get("/api/candles/{symbol}/latest", response_model=CandleSchema)
async def get_latest_candle(symbol: str) -> dict:
    repository = _require(_candle_repository, "candle store")
    candles = await repository.get_latest(symbol.upper(), limit=1)
    if not candles:
        raise HTTPException(status_code=404, detail=f"no candles for {symbol.upper()}")
    return candles[-1].to_dict()


@router.get("/api/wallet/balances", response_model=BalancesResponse)
async def get_balances() -> dict:
    balance_query = _require(_balance_query, "wallet")
    balances = await balance_query.get_all_balances(_balance_assets)
    return BalanceSummaryDTO(balances, balance_query.trading_enabled).to_dict()


@router.get("/api/wallet/balance/{asset}", response_model=BalanceResponse)
async def get_balance(asset: str) -> dict:
    """Balance disponible de un activo (con los reintentos de BalanceQuery)."""
    balance_query = _require(_balance_query, "wallet")
    asset = asset.upper()
    try:
        balance = await balance_query.get_balance(asset)
    except DomainError as exc:
        logger.error("Consulta de balance de %s falló: %s", asset, exc.message)
        raise HTTPException(status_code=502, detail=exc.to_dict()) from exc
    except Exception as exc:
        logger.error("Consulta de balance de %s falló: %s", asset, exc)
        raise HTTPException(
            status_code=502, detail={"error": "BALANCE_UNAVAILABLE", "message": str(exc)},
        ) from exc
    return {
        "asset": asset,
        "balance": float(balance),
        "trading_enabled": balance_query.trading_enabled,
    }
