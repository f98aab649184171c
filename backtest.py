import math
from dataclasses import dataclass

import numpy as np

from config import INITIAL_CAPITAL
from signals import DEATH_CROSS, GOLDEN_CROSS, crossover_signals


@dataclass(frozen=True)
class SimulationOutcome:
    final_capital: float
    trade_count: int


def simulate_crossover(
    prices,
    ma_short,
    ma_long,
    start_idx: int,
    end_idx: int,
    initial_capital: float = INITIAL_CAPITAL,
    trade_log=None
) -> SimulationOutcome:
    """
    Replay the SMA crossover strategy over prices[start_idx..end_idx].

    Whole shares only, filled at the close of the crossover day. Golden cross
    while flat buys as many shares as cash allows, except on the first
    evaluated day. Death cross while holding sells everything. Any position
    left at end_idx is liquidated there and counted as a trade.

    If `trade_log` is a list, one dict per executed trade is appended to it.
    """
    n = len(prices)
    if n == 0:
        return SimulationOutcome(initial_capital, 0)

    start_idx = max(start_idx, 0)
    end_idx = min(end_idx, n - 1)
    if start_idx >= end_idx:
        return SimulationOutcome(initial_capital, 0)
    # crossover needs the previous day
    start_idx = max(start_idx, 1)

    cash = initial_capital
    shares = 0
    trades = 0

    # Days without a cross never change state, so only visit crosses.
    # Offset k in the window is index start_idx - 1 + k.
    window = slice(start_idx - 1, end_idx + 1)
    signal = crossover_signals(ma_short[window], ma_long[window])
    for k in np.flatnonzero(signal):
        i = start_idx - 1 + int(k)
        price = float(prices[i])

        if signal[k] == GOLDEN_CROSS and shares == 0 and i != start_idx:
            buy_shares = int(cash / price) if price > 0 and math.isfinite(price) else 0
            if buy_shares > 0:
                shares += buy_shares
                cash -= buy_shares * price
                trades += 1
                if trade_log is not None:
                    trade_log.append({'index': i, 'type': 'BUY', 'price': price, 'shares': buy_shares,
                                      'cash_after': cash, 'forced': False})
        elif signal[k] == DEATH_CROSS and shares > 0:
            cash += shares * price
            if trade_log is not None:
                trade_log.append({'index': i, 'type': 'SELL', 'price': price, 'shares': shares,
                                  'cash_after': cash, 'forced': False})
            shares = 0
            trades += 1

    if shares > 0:
        price = float(prices[end_idx])
        cash += shares * price
        if trade_log is not None:
            trade_log.append({'index': end_idx, 'type': 'SELL', 'price': price, 'shares': shares,
                              'cash_after': cash, 'forced': True})
        shares = 0
        trades += 1

    return SimulationOutcome(cash, trades)
