"""Application ports - Interfaces towards infrastructure."""
from traderbot.application.ports.balance_source import IBalanceSource
from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.application.ports.market_analyzer import IMarketAnalyzer
from traderbot.application.ports.market_data_feed import IMarketDataFeed
from traderbot.application.ports.trade_executor import ITradeExecutor

__all__ = [
    "IBalanceSource",
    "IEventPublisher",
    "IMarketAnalyzer",
    "IMarketDataFeed",
    "ITradeExecutor",
]
