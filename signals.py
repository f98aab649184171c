import numpy as np

# Marker for SMA positions without enough history (warm-up)
UNDEFINED = np.nan

GOLDEN_CROSS = 1
DEATH_CROSS = -1


def is_undefined(values):
    return np.isnan(values)


def calculate_sma(prices, window: int) -> np.ndarray:
    """
    Simple moving average with an incremental running sum.

    Positions 0..window-2 hold UNDEFINED. Position window-1 is the mean of the
    first `window` prices; every later position updates the running sum with
    prices[i] - prices[i-window]. A window outside 1..len(prices) yields an
    all-UNDEFINED series of the same length.
    """
    values = np.asarray(prices, dtype=float).tolist()
    n = len(values)
    sma = np.full(n, UNDEFINED, dtype=float)
    if window < 1 or window > n:
        return sma

    # running sum, updated left to right
    total = 0.0
    for i in range(window):
        total += values[i]
    sma[window - 1] = total / window

    for i in range(window, n):
        total += values[i] - values[i - window]
        sma[i] = total / window
    return sma


def crossover_signals(ma_short, ma_long) -> np.ndarray:
    """
    Mark crosses between two aligned averages.

    Entry i is GOLDEN_CROSS when short-long goes from negative at i-1 to
    positive at i, DEATH_CROSS for the reverse, 0 otherwise. Entry 0 is always
    0, and any pair touching an UNDEFINED value stays 0.
    """
    diff = np.asarray(ma_short, dtype=float) - np.asarray(ma_long, dtype=float)
    signal = np.zeros(len(diff), dtype=np.int8)
    if len(diff) < 2:
        return signal

    prev, now = diff[:-1], diff[1:]
    signal[1:][(prev < 0) & (now > 0)] = GOLDEN_CROSS
    signal[1:][(prev > 0) & (now < 0)] = DEATH_CROSS
    return signal
