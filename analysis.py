# sma_search/analysis.py
import logging
import multiprocessing as mp
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from backtest import simulate_crossover
from config import DATE_FILTER, INITIAL_CAPITAL, MAX_PERIOD, TOP_N, OutputConfig, SearchConfig
from data import find_date_range, select_symbol
from metrics import calculate_return_pct, summarize_grid
from signals import calculate_sma

logger = logging.getLogger(__name__)

RANK_ORDER = ['final_capital', 'spread', 'short_period', 'long_period']
RANK_ASCENDING = [False, False, True, True]


@dataclass(frozen=True)
class GridResult:
    short_period: int
    long_period: int
    final_capital: float
    trade_count: int


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    short_period: int
    long_period: int
    final_capital: float
    trade_count: int
    return_pct: float


@dataclass
class GridSearchResult:
    results: List[GridResult]
    best: Optional[GridResult]


@dataclass
class SymbolReport:
    symbol: str
    start_idx: int
    end_idx: int
    best: Optional[GridResult]
    ranked: List[RankedEntry]
    results: List[GridResult] = field(repr=False)
    summary: Dict[str, float] = field(default_factory=dict)

    @property
    def trading_days(self) -> int:
        return self.end_idx - self.start_idx + 1


def build_sma_cache(prices, max_period: int) -> Dict[int, np.ndarray]:
    return {n: calculate_sma(prices, n) for n in range(1, max_period + 1)}


def _sweep_row(prices, sma_cache, short_period, start_idx, end_idx, initial_capital):
    row = []
    ma_short = sma_cache[short_period]
    for long_period in range(1, len(sma_cache) + 1):
        outcome = simulate_crossover(prices, ma_short, sma_cache[long_period],
                                     start_idx, end_idx, initial_capital)
        row.append(GridResult(short_period, long_period, outcome.final_capital, outcome.trade_count))
    return row


# Globals populated inside worker processes
_prices: Optional[np.ndarray] = None
_sma_cache: Dict[int, np.ndarray] = {}
_window = (0, 0)
_initial_capital = INITIAL_CAPITAL


def _init_worker(prices, max_period, start_idx, end_idx, initial_capital):
    global _prices, _sma_cache, _window, _initial_capital

    _prices = prices
    _sma_cache = build_sma_cache(prices, max_period)
    _window = (start_idx, end_idx)
    _initial_capital = initial_capital
    logger.debug("Grid worker %d ready (max_period=%d)", os.getpid(), max_period)


def _simulate_row(short_period):
    if _prices is None:
        raise RuntimeError("Worker not initialized")
    return _sweep_row(_prices, _sma_cache, short_period, _window[0], _window[1], _initial_capital)


def _iter_rows(prices, start_idx, end_idx, max_period, initial_capital, workers):
    periods = range(1, max_period + 1)
    if workers <= 1:
        sma_cache = build_sma_cache(prices, max_period)
        for s in periods:
            yield _sweep_row(prices, sma_cache, s, start_idx, end_idx, initial_capital)
        return

    processes = min(workers, max_period)
    pool_args = (prices, max_period, start_idx, end_idx, initial_capital)
    with mp.Pool(processes=processes, initializer=_init_worker, initargs=pool_args) as pool:
        # imap keeps short-period order
        yield from pool.imap(_simulate_row, periods)


def grid_search(
    prices,
    start_idx: int,
    end_idx: int,
    max_period: int = MAX_PERIOD,
    initial_capital: float = INITIAL_CAPITAL,
    workers: int = 1,
    show_progress: bool = False
) -> GridSearchResult:
    """
    Simulate every (short, long) pair in 1..max_period x 1..max_period.

    Results come back short-major. The best pair is tracked in the same pass:
    only a strictly higher capital replaces it, so the first seen wins ties.
    """
    if max_period < 1:
        raise ValueError(f"max_period must be >= 1, got {max_period}")
    prices = np.asarray(prices, dtype=float)

    rows = _iter_rows(prices, start_idx, end_idx, max_period, initial_capital, workers)
    if show_progress:
        rows = tqdm(rows, total=max_period, desc="Grid search", unit="short")

    results: List[GridResult] = []
    best = None
    for row in rows:
        for r in row:
            results.append(r)
            if best is None or r.final_capital > best.final_capital:
                best = r

    return GridSearchResult(results=results, best=best)


def ranking_key(result):
    """Sort key for the ranking order: capital, spread, short, long."""
    return (-result.final_capital, -abs(result.short_period - result.long_period),
            result.short_period, result.long_period)


def results_frame(results) -> pd.DataFrame:
    df = pd.DataFrame({
        'short_period': [r.short_period for r in results],
        'long_period': [r.long_period for r in results],
        'final_capital': [r.final_capital for r in results],
        'trade_count': [r.trade_count for r in results],
    }, columns=['short_period', 'long_period', 'final_capital', 'trade_count'])
    df['spread'] = (df['short_period'] - df['long_period']).abs()
    return df


def rank_results(results, top_n: int = TOP_N, initial_capital: float = INITIAL_CAPITAL) -> List[RankedEntry]:
    """
    Top `top_n` results, ordered by higher capital, then wider |short-long|
    spread, then smaller short period, then smaller long period.
    """
    if top_n < 1 or not results:
        return []

    ordered = results_frame(results).sort_values(RANK_ORDER, ascending=RANK_ASCENDING).head(top_n)
    ranked = []
    for rank, row in enumerate(ordered.itertuples(index=False), start=1):
        capital = float(row.final_capital)
        ranked.append(RankedEntry(
            rank=rank,
            short_period=int(row.short_period),
            long_period=int(row.long_period),
            final_capital=capital,
            trade_count=int(row.trade_count),
            return_pct=calculate_return_pct(capital, initial_capital),
        ))
    return ranked


def ranked_frame(ranked) -> pd.DataFrame:
    return pd.DataFrame(
        [(e.rank, e.short_period, e.long_period, e.final_capital, e.return_pct, e.trade_count) for e in ranked],
        columns=['rank', 'short', 'long', 'final_capital', 'return_pct', 'trades'],
    )


def run_symbol(
    table,
    symbol: str,
    date_filter: str = DATE_FILTER,
    search: Optional[SearchConfig] = None,
    initial_capital: float = INITIAL_CAPITAL,
    top_n: int = TOP_N,
    output: Optional[OutputConfig] = None,
    verbose: bool = True
) -> SymbolReport:
    """
    Brute-force one symbol over the dates matching `date_filter`.

    Raises KeyError for an unknown symbol and ValueError when no date matches.
    """
    search = search or SearchConfig()
    series = select_symbol(table, symbol)
    start_idx, end_idx = find_date_range(series.dates, date_filter)

    if verbose:
        print(f"\n=== Symbol: {symbol} ===")
        print(f"{date_filter} index range: {start_idx} ~ {end_idx}")
        print(f"{date_filter} trading days: {end_idx - start_idx + 1}")

    sweep = grid_search(series.prices, start_idx, end_idx,
                        max_period=search.max_period,
                        initial_capital=initial_capital,
                        workers=search.workers,
                        show_progress=search.show_progress)
    ranked = rank_results(sweep.results, top_n=top_n, initial_capital=initial_capital)
    frame = results_frame(sweep.results)
    report = SymbolReport(
        symbol=symbol,
        start_idx=start_idx,
        end_idx=end_idx,
        best=sweep.best,
        ranked=ranked,
        results=sweep.results,
        summary=summarize_grid(frame, initial_capital),
    )

    if verbose:
        print_report(report)

    if output is not None and output.save_comparison:
        from io_utils import save_grid_comparison
        save_grid_comparison(frame.drop(columns='spread'), symbol, root=output.results_dir)

    if output is not None and output.save_plots and ranked:
        _save_plots(series, frame, ranked[0], start_idx, end_idx, initial_capital, output.results_dir)

    return report


def print_report(report: SymbolReport):
    best = report.best
    print(f"\n==== {report.symbol} ====")
    if best is not None:
        print(f"Best combo: short={best.short_period} long={best.long_period} "
              f"final_capital={best.final_capital}")
    s = report.summary
    if s.get('combinations'):
        print(f"Combinations: {s['combinations']} | profitable {s['profitable']} | "
              f"losing {s['losing']} | flat {s['flat']} | median return {s['median_return_pct']:.4f}%")
    print(f"=== Top{len(report.ranked)} by final_capital ===")
    print(ranked_frame(report.ranked).to_string(index=False, float_format=lambda v: f"{v:.4f}"))


def _save_plots(series, frame, top, start_idx, end_idx, initial_capital, results_root):
    from plot import plot_capital_heatmap, plot_strategy

    save_root = os.path.join(results_root, 'plots', series.symbol)
    os.makedirs(save_root, exist_ok=True)
    heat_path = os.path.join(save_root, f"{series.symbol}_capital_heatmap.png")
    strat_path = os.path.join(save_root, f"{series.symbol}_strategy_short{top.short_period}_long{top.long_period}.png")

    ma_short = calculate_sma(series.prices, top.short_period)
    ma_long = calculate_sma(series.prices, top.long_period)
    trades = []
    simulate_crossover(series.prices, ma_short, ma_long, start_idx, end_idx, initial_capital, trade_log=trades)

    plot_capital_heatmap(frame, series.symbol, save_path=heat_path)
    plot_strategy(series, ma_short, ma_long, start_idx, end_idx,
                  short_window=top.short_period, long_window=top.long_period,
                  trades=trades, save_path=strat_path)
    print(f"Heatmap saved:        {heat_path}")
    print(f"Strategy plot saved:  {strat_path}")
