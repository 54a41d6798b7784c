"""
TraderBot – Infrastructure Layer
==================================
Implementaciones concretas de interfaces.

Este módulo contiene:
- persistence/: MySQL (SQLAlchemy async) y repositorios en memoria
- external/: Bitget WebSocket, exchange simulado, event bus
- analysis/: Analizadores de mercado

REGLA DE DEPENDENCIA:
Esta capa implementa interfaces definidas en domain/repositories/ y
application/ports/. Puede importar de domain/, application/ y shared/.
"""
