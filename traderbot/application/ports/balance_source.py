"""
TraderBot – Application Port: Balance Source
==============================================
Lectura cruda del balance de la cuenta. Puede fallar transitoriamente;
los reintentos los gestiona BalanceQuery, no la fuente.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal


class IBalanceSource(ABC):

    @abstractmethod
    async def get_balance(self, asset: str) -> Decimal:
        """Balance disponible del activo (e.g. "USDT")."""
        pass
