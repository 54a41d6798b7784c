"""
TraderBot – Application Layer
===============================
Capa de casos de uso y orquestación.

Este módulo contiene:
- use_cases/: DecisionEngine (máquina de estados de la martingala)
- services/: BalanceQuery, PositionLedger, CandlePipeline, BotLifecycle
- ports/: Interfaces hacia infraestructura
- dto/: Data Transfer Objects

REGLA DE DEPENDENCIA:
Esta capa puede importar de domain/ y de sus propios ports/.
NO puede importar de infrastructure/ ni de presentation/.
"""
