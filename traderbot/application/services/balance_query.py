"""
TraderBot – Application Service: BalanceQuery
===============================================
Consulta resiliente del balance de la cuenta.

═══════════════════════════════════════════════════════════════
              ALGORITMO DE REINTENTO
═══════════════════════════════════════════════════════════════

  intento 1 ──falla──▸ sleep(delay) ──▸ intento 2 ──falla──▸ sleep(2·delay) ──▸ intento 3
                                                                                  │
                                                              falla ──────────────┤
                                                                                  ▼
                                      require_balance_check ? re-raise : Decimal(0)

- max_retries cuenta intentos TOTALES (max_retries=3 → 3 llamadas, 2 esperas).
- max_retries=0 se trata como un único intento.
- Con trading deshabilitado NO se contacta la fuente: retorna 0 y no
  es un fallo (modo solo datos de mercado).

FAIL CLOSED vs FAIL OPEN:
  require_balance_check=True  → se propaga el error original
  require_balance_check=False → 0, y RiskGate se niega a abrir con balance 0

El sleep es inyectable para que los tests no esperen.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Iterable

from traderbot.application.ports.balance_source import IBalanceSource
from traderbot.domain.exceptions.domain_errors import ValidationError
from traderbot.shared.logging.logger import get_logger

logger = get_logger("balance_query")

ZERO = Decimal("0")

SleepFn = Callable[[float], Awaitable[None]]


class BalanceQuery:
    """Wrapper con reintentos y backoff sobre IBalanceSource."""

    def __init__(
        self,
        source: IBalanceSource,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        use_exponential_backoff: bool = True,
        require_balance_check: bool = False,
        trading_enabled: bool = True,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValidationError("max_retries no puede ser negativo", field="max_retries", value=max_retries)
        self._source = source
        self._max_retries = max_retries
        self._initial_delay = initial_delay
        self._use_backoff = use_exponential_backoff
        self._require_balance_check = require_balance_check
        self._trading_enabled = trading_enabled
        self._sleep = sleep

    @classmethod
    def from_settings(cls, source: IBalanceSource, settings, sleep: SleepFn = asyncio.sleep) -> "BalanceQuery":
        return cls(
            source,
            max_retries=settings.trading_max_retries,
            initial_delay=settings.trading_retry_delay_seconds,
            use_exponential_backoff=settings.trading_use_exponential_backoff,
            require_balance_check=settings.require_balance_check,
            trading_enabled=settings.trading_enabled,
            sleep=sleep,
        )

    @property
    def trading_enabled(self) -> bool:
        return self._trading_enabled

    async def get_balance(self, asset: str) -> Decimal:
        """
        Balance disponible de `asset` con reintentos.

        Raises:
            La excepción original del último intento si
            require_balance_check=True y se agotaron los intentos.
        """
        if not self._trading_enabled:
            logger.debug("Trading deshabilitado – balance de %s no consultado", asset)
            return ZERO

        attempts = max(1, self._max_retries)
        delay = self._initial_delay
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                balance = await self._source.get_balance(asset)
                return Decimal(str(balance))
            except ValidationError:
                # Datos inválidos: no tiene sentido reintentar
                raise
            except Exception as exc:
                last_error = exc
                if attempt < attempts:
                    logger.warning(
                        "Fallo consultando balance de %s (intento %d/%d): %s – reintento en %.1fs",
                        asset, attempt, attempts, exc, delay,
                    )
                    await self._sleep(delay)
                    if self._use_backoff:
                        delay *= 2

        if self._require_balance_check:
            logger.error(
                "Balance de %s no disponible tras %d intentos – fail closed", asset, attempts,
            )
            raise last_error

        logger.warning(
            "Balance de %s no disponible tras %d intentos – se asume 0 (fail open): %s",
            asset, attempts, last_error,
        )
        return ZERO

    async def get_all_balances(self, assets: Iterable[str]) -> Dict[str, Decimal]:
        """
        Balance por activo. Un fallo en un activo deja ese activo en 0
        y NO aborta el resto.
        """
        if not self._trading_enabled:
            return {}

        balances: Dict[str, Decimal] = {}
        for asset in assets:
            try:
                balances[asset] = await self.get_balance(asset)
            except Exception as exc:
                logger.error("Balance de %s no disponible, se reporta 0: %s", asset, exc)
                balances[asset] = ZERO
        return balances
