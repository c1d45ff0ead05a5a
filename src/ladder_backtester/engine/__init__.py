"""Ladder backtesting engine — models, simulator, aggregator, reporter."""

from ladder_backtester.engine.models import (
    ResultsSummary,
    SimulationState,
    TradeSide,
    Transaction,
)
from ladder_backtester.engine.aggregator import ResultsAggregator
from ladder_backtester.engine.simulator import LadderBacktestSimulator, process_bar, run_backtest
from ladder_backtester.engine.reporter import LadderBacktestReporter

__all__ = [
    "ResultsSummary",
    "SimulationState",
    "TradeSide",
    "Transaction",
    "ResultsAggregator",
    "LadderBacktestSimulator",
    "process_bar",
    "run_backtest",
    "LadderBacktestReporter",
]
