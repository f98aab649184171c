# sma_search/metrics.py
import numpy as np

from config import INITIAL_CAPITAL


def calculate_return_pct(final_capital: float, initial_capital: float = INITIAL_CAPITAL) -> float:
    return (final_capital / initial_capital - 1.0) * 100.0


def summarize_grid(results_df, initial_capital: float = INITIAL_CAPITAL):
    """
    Aggregate view of one symbol's sweep.

    `results_df` needs 'final_capital' and 'trade_count' columns, one row per
    (short, long) combination.
    """
    n = len(results_df)
    if n == 0:
        return {
            'combinations': 0,
            'profitable': 0, 'losing': 0, 'flat': 0,
            'best_capital': np.nan, 'worst_capital': np.nan,
            'median_return_pct': np.nan, 'mean_trades': np.nan,
        }

    capital = results_df['final_capital']
    returns = calculate_return_pct(capital, initial_capital)

    return {
        'combinations': int(n),
        'profitable': int((capital > initial_capital).sum()),
        'losing': int((capital < initial_capital).sum()),
        'flat': int((capital == initial_capital).sum()),
        'best_capital': float(capital.max()),
        'worst_capital': float(capital.min()),
        'median_return_pct': round(float(returns.median()), 4),
        'mean_trades': round(float(results_df['trade_count'].mean()), 2),
    }
