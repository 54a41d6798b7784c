"""
TraderBot – Main Application Entry Point
==========================================
Orquesta los componentes: Feed Bitget + CandlePipeline + DecisionEngine + API de control.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (las instancias se crean perezosamente)
  3. FastAPI lifespan (startup):
     a. Inicializar MySQL si db_enabled
     b. Inyectar dependencias en las rutas
     c. Arrancar el bot si bot_autostart
  4. FastAPI lifespan (shutdown):
     a. Detener el bot (el ciclo en vuelo termina)
     b. Cerrar MySQL y el event bus

FLUJO DE DATOS:
  Bitget WS → BitgetCandleFeed → BotLifecycle (pump) → CandlePipeline
       → CandleStore.save → DecisionEngine
            → BalanceQuery → RiskGate → Analyzer → TradeExecutor → PositionLedger
       → EventBus(position_opened | position_closed | cycle_failed | bot_status)

  uvicorn traderbot.main:app --host 0.0.0.0 --port 8888
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from traderbot.shared.logging.logger import setup_logging, get_logger
from traderbot.shared.config.settings import settings
from traderbot.presentation.api.routes import router, init_routes
from traderbot.container import init_container

# ─── Logging ────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("main")

# ─── Contenedor de Dependencias ─────────────────────────────────────────
container = init_container(settings)


# ─── FastAPI Lifespan ───────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle de la aplicación."""
    risk = container.risk_gate.config
    logger.info("=" * 60)
    logger.info("  TraderBot – Martingale Decision Engine")
    logger.info("  Símbolo: %s  Timeframe: %s", settings.bot_symbol, settings.bot_timeframe)
    logger.info("  Martingala: %d pasos ×%s, base %s del balance",
                risk.max_martingale_steps, risk.martingale_multiplier, risk.base_position_fraction)
    logger.info("  TP/SL: +%s / -%s   Drawdown máx: %s",
                risk.take_profit_threshold, risk.stop_loss_threshold, risk.max_drawdown)
    logger.info("  Trading: %s   Paper: %s",
                "habilitado" if settings.trading_enabled else "deshabilitado (solo datos)",
                settings.paper_trading)
    logger.info("=" * 60)

    if settings.db_enabled:
        await container.db_manager.initialize()
        logger.info("  Database: MySQL conectada (%s@%s/%s)",
                    settings.db_user, settings.db_host, settings.db_name)
    else:
        logger.info("  Database: Deshabilitada (db_enabled=False) – almacenamiento en memoria")

    init_routes(
        container.bot_lifecycle,
        container.decision_engine,
        container.position_ledger,
        container.candle_repository,
        container.balance_query,
        balance_assets=[container.symbol.base, container.symbol.quote],
    )

    if settings.bot_autostart:
        try:
            await container.bot_lifecycle.start()
        except Exception as exc:
            # La API sigue disponible para reintentar con POST /api/bot/start
            logger.error("Autostart del bot falló: %s", exc)

    logger.info("✓ Todos los componentes iniciados correctamente")

    yield  # ← La app está corriendo aquí

    # ── SHUTDOWN ──
    logger.info("Iniciando shutdown...")

    await container.bot_lifecycle.stop()

    if settings.db_enabled:
        await container.db_manager.close()
        logger.info("  Database: Conexión cerrada")

    await container.event_publisher.unsubscribe_all()
    logger.info("✓ Shutdown completo")


# ─── FastAPI App ────────────────────────────────────────────────────────

app = FastAPI(
    title="TraderBot",
    description="Motor de decisión de trading con martingala acotada por riesgo",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS para frontend local
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
