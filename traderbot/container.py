"""
Dependency Injection Container.

Contenedor que gestiona todas las instancias de servicios, repositorios
y casos de uso del bot.

Clean Architecture: este contenedor vive en la capa más externa y es el
único lugar donde se crean dependencias concretas.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Any

# Domain
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.domain.repositories.position_repository import IPositionRepository
from traderbot.domain.exceptions.domain_errors import ValidationError
from traderbot.domain.services.risk_gate import RiskConfig, RiskGate
from traderbot.domain.value_objects.symbol import Symbol

# Application
from traderbot.application.ports.balance_source import IBalanceSource
from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.application.ports.market_analyzer import IMarketAnalyzer
from traderbot.application.ports.market_data_feed import IMarketDataFeed
from traderbot.application.ports.trade_executor import ITradeExecutor
from traderbot.application.services.balance_query import BalanceQuery
from traderbot.application.services.bot_lifecycle import BotLifecycle
from traderbot.application.services.candle_pipeline import CandlePipeline
from traderbot.application.services.position_ledger import PositionLedger
from traderbot.application.use_cases.decision_engine import DecisionEngine

# Shared
from traderbot.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Cada dependencia se crea perezosamente la primera vez y luego se
    reutiliza. override() permite inyectar dobles en tests.
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)

    # Repositorios
    _candle_repository: Optional[ICandleRepository] = None
    _position_repository: Optional[IPositionRepository] = None

    # Ports
    _event_publisher: Optional[IEventPublisher] = None
    _market_data_feed: Optional[IMarketDataFeed] = None
    _market_analyzer: Optional[IMarketAnalyzer] = None
    _trade_executor: Optional[ITradeExecutor] = None
    _balance_source: Optional[IBalanceSource] = None

    # Servicios
    _risk_gate: Optional[RiskGate] = None
    _balance_query: Optional[BalanceQuery] = None
    _position_ledger: Optional[PositionLedger] = None
    _decision_engine: Optional[DecisionEngine] = None
    _candle_pipeline: Optional[CandlePipeline] = None
    _bot_lifecycle: Optional[BotLifecycle] = None

    # Infra
    _db_manager: Optional[Any] = None
    _paper_exchange: Optional[Any] = None

    @property
    def symbol(self) -> Symbol:
        return Symbol.parse(self.settings.bot_symbol)

    # ==================== Infraestructura ====================

    @property
    def db_manager(self):
        """DatabaseManager (solo con db_enabled=True)."""
        if self._db_manager is None:
            from traderbot.infrastructure.persistence.database import DatabaseManager
            self._db_manager = DatabaseManager(self.settings)
        return self._db_manager

    @property
    def paper_exchange(self):
        if self._paper_exchange is None:
            from traderbot.infrastructure.external.paper_exchange import PaperExchange
            self._paper_exchange = PaperExchange(
                self.candle_repository,
                initial_balances={self.symbol.quote: self.settings.paper_initial_balance},
            )
        return self._paper_exchange

    # ==================== Domain Services ====================

    @property
    def risk_gate(self) -> RiskGate:
        """RiskGate (valida la configuración de riesgo al crearse)."""
        if self._risk_gate is None:
            self._risk_gate = RiskGate(RiskConfig.from_settings(self.settings))
        return self._risk_gate

    # ==================== Repositories ====================

    @property
    def candle_repository(self) -> ICandleRepository:
        if self._candle_repository is None:
            if self.settings.db_enabled:
                from traderbot.infrastructure.persistence.repositories.candle_repository_impl import (
                    CandleRepositoryImpl,
                )
                self._candle_repository = CandleRepositoryImpl(self.db_manager)
            else:
                from traderbot.infrastructure.persistence.repositories.memory_repository import (
                    InMemoryCandleRepository,
                )
                self._candle_repository = InMemoryCandleRepository()
        return self._candle_repository

    @property
    def position_repository(self) -> IPositionRepository:
        if self._position_repository is None:
            if self.settings.db_enabled:
                from traderbot.infrastructure.persistence.repositories.position_repository_impl import (
                    PositionRepositoryImpl,
                )
                self._position_repository = PositionRepositoryImpl(self.db_manager)
            else:
                from traderbot.infrastructure.persistence.repositories.memory_repository import (
                    InMemoryPositionRepository,
                )
                self._position_repository = InMemoryPositionRepository()
        return self._position_repository

    # ==================== Ports ====================

    @property
    def event_publisher(self) -> IEventPublisher:
        if self._event_publisher is None:
            from traderbot.infrastructure.external.event_bus_adapter import EventBus
            self._event_publisher = EventBus(self.settings.event_bus_max_queue_size)
        return self._event_publisher

    @property
    def market_data_feed(self) -> IMarketDataFeed:
        if self._market_data_feed is None:
            from traderbot.infrastructure.external.bitget_feed import BitgetCandleFeed
            self._market_data_feed = BitgetCandleFeed(self.settings)
        return self._market_data_feed

    @property
    def market_analyzer(self) -> IMarketAnalyzer:
        if self._market_analyzer is None:
            from traderbot.infrastructure.analysis.dow_theory_analyzer import DowTheoryAnalyzer
            self._market_analyzer = DowTheoryAnalyzer()
        return self._market_analyzer

    @property
    def trade_executor(self) -> ITradeExecutor:
        if self._trade_executor is None:
            if not self.settings.paper_trading:
                raise ValidationError(
                    "Solo hay ejecutor simulado: paper_trading debe ser True",
                    field="paper_trading",
                    value=False,
                )
            self._trade_executor = self.paper_exchange
        return self._trade_executor

    @property
    def balance_source(self) -> IBalanceSource:
        if self._balance_source is None:
            self._balance_source = self.paper_exchange
        return self._balance_source

    # ==================== Application Services ====================

    @property
    def balance_query(self) -> BalanceQuery:
        if self._balance_query is None:
            self._balance_query = BalanceQuery.from_settings(self.balance_source, self.settings)
        return self._balance_query

    @property
    def position_ledger(self) -> PositionLedger:
        if self._position_ledger is None:
            self._position_ledger = PositionLedger(self.position_repository)
        return self._position_ledger

    @property
    def decision_engine(self) -> DecisionEngine:
        if self._decision_engine is None:
            s = self.settings
            self._decision_engine = DecisionEngine(
                symbol=s.bot_symbol,
                risk_gate=self.risk_gate,
                ledger=self.position_ledger,
                balance_query=self.balance_query,
                analyzer=self.market_analyzer,
                executor=self.trade_executor,
                candle_repository=self.candle_repository,
                event_publisher=self.event_publisher,
                confidence_threshold=Decimal(str(s.confidence_threshold)),
                analysis_window=s.analysis_window,
                timeframe=s.bot_timeframe,
                initial_capital=Decimal(str(s.initial_capital)),
            )
        return self._decision_engine

    @property
    def candle_pipeline(self) -> CandlePipeline:
        if self._candle_pipeline is None:
            pipeline = CandlePipeline(
                self.candle_repository,
                event_publisher=self.event_publisher,
                max_queue_size=self.settings.pipeline_queue_size,
            )
            pipeline.register(self.decision_engine)
            self._candle_pipeline = pipeline
        return self._candle_pipeline

    @property
    def bot_lifecycle(self) -> BotLifecycle:
        if self._bot_lifecycle is None:
            self._bot_lifecycle = BotLifecycle(
                feed=self.market_data_feed,
                pipeline=self.candle_pipeline,
                symbol=str(self.symbol),
                timeframe=self.settings.bot_timeframe,
                event_publisher=self.event_publisher,
            )
        return self._bot_lifecycle

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        for name in list(vars(self)):
            if name.startswith("_"):
                setattr(self, name, None)

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests con mocks).

        Args:
            name: Nombre de la dependencia (ej: 'market_data_feed')
            instance: Instancia a usar
        """
        attr_name = f"_{name}"
        if hasattr(self, attr_name):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    """Instancia global del contenedor."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def init_container(settings: Optional[Settings] = None) -> Container:
    """
    Inicializa el contenedor con configuración específica.

    Args:
        settings: Configuración opcional. Si es None, usa valores por defecto.
    """
    global _container
    _container = Container(settings=settings or Settings())
    return _container


def reset_container() -> None:
    global _container
    if _container is not None:
        _container.reset()
    _container = None
