"""
TraderBot – Domain Entity: Candle
===================================
Vela OHLCV inmutable recibida del feed de mercado.

Decisiones de diseño:
- frozen=True → inmutable una vez ingerida. Nadie puede alterar una
  vela pasada, garantizando integridad histórica.
- Precios en Decimal (punto fijo): los cálculos de PnL y tamaño de
  posición no acumulan error binario.
- Identidad = (symbol, timestamp). Dos velas con la misma identidad son
  la MISMA vela re-entregada: la primera escritura gana.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from traderbot.domain.exceptions.domain_errors import ValidationError


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLCV con timestamp de apertura del periodo."""

    symbol: str             # e.g. "BTCUSDT"
    timestamp: datetime     # inicio del periodo (UTC, tz-aware)
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    timeframe: str = "5m"

    def __post_init__(self) -> None:
        # Normalizar a UTC tz-aware para que (symbol, timestamp) compare bien
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        object.__setattr__(self, "timestamp", ts)
        for name in ("open", "high", "low", "close", "volume"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))

    @property
    def key(self) -> tuple[str, datetime]:
        """Identidad de la vela."""
        return (self.symbol, self.timestamp)

    def validate(self) -> None:
        """
        Rechaza velas que harían dividir por cero o son basura del feed.

        Raises:
            ValidationError si el precio de cierre no es positivo o el
            símbolo está vacío.
        """
        if not self.symbol:
            raise ValidationError("Vela sin símbolo", field="symbol", value=self.symbol)
        if self.close <= 0:
            raise ValidationError(
                f"Precio de cierre no positivo: {self.close}", field="close", value=self.close,
            )
        if self.volume < 0:
            raise ValidationError(
                f"Volumen negativo: {self.volume}", field="volume", value=self.volume,
            )

    def to_dict(self) -> dict:
        """Serialización para API / eventos."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "open": str(self.open),
            "high": str(self.high),
            "low": str(self.low),
            "close": str(self.close),
            "volume": str(self.volume),
            "timeframe": self.timeframe,
        }
