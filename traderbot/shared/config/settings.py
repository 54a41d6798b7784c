"""
TraderBot – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

Los valores de riesgo (drawdown, martingala, TP/SL) se validan además
en RiskGate al construirse, así una configuración absurda falla al
arrancar y no en mitad de un ciclo de decisión.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ─── Bot ────────────────────────────────────────────────────────────
    bot_symbol: str = Field(default="BTCUSDT", description="Símbolo único operado por el bot")
    bot_timeframe: str = Field(default="5m", description="Timeframe de las velas consumidas")
    bot_autostart: bool = Field(
        default=False, description="Arrancar el bot en el startup de la app",
    )
    initial_capital: Decimal = Field(
        default=Decimal("100"), description="Equity inicial (pico de referencia para drawdown)",
    )

    # ─── Riesgo / Martingala ────────────────────────────────────────────
    max_drawdown: Decimal = Field(
        default=Decimal("0.20"), description="Drawdown máximo permitido (fracción)",
    )
    max_martingale_steps: int = Field(
        default=5, description="Máximo número de pasos de martingala",
    )
    martingale_multiplier: Decimal = Field(
        default=Decimal("2.0"), description="Multiplicador de tamaño por paso",
    )
    base_position_fraction: Decimal = Field(
        default=Decimal("0.01"), description="Fracción del balance en el paso 0",
    )
    take_profit_threshold: Decimal = Field(
        default=Decimal("0.02"), description="Cierre por ganancia (fracción)",
    )
    stop_loss_threshold: Decimal = Field(
        default=Decimal("0.01"), description="Cierre por pérdida (fracción, positiva)",
    )

    # ─── Señales ────────────────────────────────────────────────────────
    confidence_threshold: Decimal = Field(
        default=Decimal("0.7"), description="Confianza mínima (estricta) para abrir",
    )
    analysis_window: int = Field(
        default=20, description="Velas recientes entregadas al analizador",
    )

    # ─── Trading / Balance ──────────────────────────────────────────────
    trading_enabled: bool = Field(
        default=False, description="False = modo solo datos de mercado",
    )
    require_balance_check: bool = Field(
        default=False, description="Fallar cerrado si no se puede leer el balance",
    )
    trading_max_retries: int = Field(
        default=3, description="Intentos totales de consulta de balance",
    )
    trading_retry_delay_seconds: float = Field(
        default=2.0, description="Delay inicial (seg) entre reintentos",
    )
    trading_use_exponential_backoff: bool = Field(
        default=True, description="Duplicar el delay en cada reintento",
    )

    # ─── Paper trading ──────────────────────────────────────────────────
    paper_trading: bool = Field(
        default=True, description="Usar el exchange simulado en vez de uno real",
    )
    paper_initial_balance: Decimal = Field(
        default=Decimal("1000"), description="Balance inicial del exchange simulado",
    )

    # ─── Pipeline ───────────────────────────────────────────────────────
    pipeline_queue_size: int = Field(
        default=1000, description="Capacidad de la cola de velas por símbolo (contrapresión)",
    )

    # ─── Feed WebSocket (Bitget público) ────────────────────────────────
    feed_ws_url: str = Field(
        default="wss://ws.bitget.com/v2/ws/public",
        description="Endpoint WebSocket público de velas",
    )
    feed_inst_type: str = Field(default="SPOT", description="SPOT | USDT-FUTURES")
    ws_reconnect_base_delay: float = Field(
        default=1.0, description="Delay base (seg) para backoff exponencial",
    )
    ws_reconnect_max_delay: float = Field(
        default=60.0, description="Delay máximo (seg) entre reconexiones",
    )
    ws_heartbeat_interval: int = Field(
        default=30, description="Intervalo (seg) de ping/heartbeat",
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888)
    debug: bool = Field(default=False)

    # ─── MySQL Database ─────────────────────────────────────────────────
    db_host: str = Field(default="localhost", description="MySQL host")
    db_port: int = Field(default=3306, description="MySQL port")
    db_user: str = Field(default="traderbot", description="MySQL username")
    db_password: str = Field(default="traderbot_secret", description="MySQL password")
    db_name: str = Field(default="traderbot", description="MySQL database name")
    db_echo: bool = Field(default=False, description="Loguear queries SQL (debug)")
    db_pool_size: int = Field(default=5, description="Conexiones en el pool")
    db_max_overflow: int = Field(default=10, description="Conexiones extra en picos")
    db_enabled: bool = Field(
        default=False, description="Habilitar persistencia MySQL (si no, en memoria)",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
