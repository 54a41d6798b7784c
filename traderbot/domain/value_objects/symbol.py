"""
TraderBot – Domain Value Object: Symbol
=========================================
Par de trading (e.g. BTCUSDT → base=BTC, quote=USDT).

El activo quote es el que se consulta como balance disponible
para dimensionar posiciones.
"""

from __future__ import annotations

from dataclasses import dataclass

from traderbot.domain.exceptions.domain_errors import ValidationError

# Orden importa: "USDT" antes que "USD"
_KNOWN_QUOTES = ("USDT", "USD")


@dataclass(frozen=True, slots=True)
class Symbol:
    base: str
    quote: str

    def __str__(self) -> str:
        return f"{self.base}{self.quote}"

    @classmethod
    def parse(cls, raw: str) -> "Symbol":
        symbol = (raw or "").strip().upper()
        for quote in _KNOWN_QUOTES:
            if symbol.endswith(quote) and len(symbol) > len(quote):
                return cls(base=symbol[: -len(quote)], quote=quote)
        raise ValidationError(f"No se pudo parsear el símbolo: {raw!r}", field="symbol", value=raw)
