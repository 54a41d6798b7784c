"""External adapters: exchange, market data feed, event bus."""
from traderbot.infrastructure.external.event_bus_adapter import EventBus
from traderbot.infrastructure.external.paper_exchange import PaperExchange

__all__ = ["EventBus", "PaperExchange"]
