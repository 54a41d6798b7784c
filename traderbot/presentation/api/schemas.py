"""
TraderBot – API Schemas (Pydantic)
====================================
Schemas de respuesta de la API REST de control.
Los montos viajan como float (lectura humana); el cálculo vive en Decimal.
"""

from __future__ import annotations

from pydantic import BaseModel
from typing import Dict, List, Optional


class HealthResponse(BaseModel):
    status: str
    service: str
    bot_status: str


class BotControlResponse(BaseModel):
    outcome: str
    status: str
    message: str


class BotStatusResponse(BaseModel):
    status: str
    symbol: str
    timeframe: str
    last_error: Optional[str] = None
    martingale: dict
    open_position: Optional[dict] = None
    pipeline: dict


class CandleSchema(BaseModel):
    symbol: str
    timestamp: str
    open: float
    high: float
    low: float
    close: float
    volume: float
    timeframe: str


class CandlesResponse(BaseModel):
    symbol: str
    count: int
    candles: List[CandleSchema]


class PositionSchema(BaseModel):
    id: Optional[int] = None
    symbol: str
    side: str
    quantity: float
    entry_price: float
    current_price: float
    martingale_step: int
    is_open: bool
    opened_at: str
    closed_at: Optional[str] = None
    realized_pnl: Optional[float] = None
    unrealized_pnl: Optional[float] = None


class PositionsResponse(BaseModel):
    count: int
    positions: List[PositionSchema]


class BalancesResponse(BaseModel):
    trading_enabled: bool
    balances: Dict[str, float]
    assets_with_balance: int


class BalanceResponse(BaseModel):
    asset: str
    balance: float
    trading_enabled: bool
