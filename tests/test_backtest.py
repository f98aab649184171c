import numpy as np
import pytest

from backtest import SimulationOutcome, simulate_crossover
from config import INITIAL_CAPITAL
from signals import calculate_sma


def test_spike_scenario(spike_prices):
    short, long = calculate_sma(spike_prices, 2), calculate_sma(spike_prices, 4)
    trades = []

    outcome = simulate_crossover(spike_prices, short, long, 0, 8, trade_log=trades)

    # no golden cross ever forms, the death cross at 6 finds no position
    assert outcome == SimulationOutcome(INITIAL_CAPITAL, 0)
    assert trades == []


def test_full_range_round_trips(cross_prices, cross_mas):
    trades = []

    outcome = simulate_crossover(cross_prices, *cross_mas, 0, 9, trade_log=trades)

    assert outcome == SimulationOutcome(12222.0, 4)
    assert [(t['index'], t['type'], t['shares'], t['forced']) for t in trades] == [
        (3, 'BUY', 1111, False),
        (6, 'SELL', 1111, False),
        (9, 'BUY', 1527, False),
        (9, 'SELL', 1527, True),
    ]
    assert trades[0]['cash_after'] == 1.0
    assert trades[1]['cash_after'] == 12222.0


def test_no_buy_on_first_evaluated_day(cross_prices, cross_mas):
    trades = []

    outcome = simulate_crossover(cross_prices, *cross_mas, 3, 9, trade_log=trades)

    # the golden cross at 3 is ignored; only the one at 9 buys
    assert outcome == SimulationOutcome(10000.0, 2)
    assert trades[0]['index'] == 9


def test_start_forced_to_one_is_first_day():
    prices = np.array([10.0, 10.0, 10.0])
    short = np.array([-1.0, 1.0, 1.0])
    long = np.zeros(3)

    assert simulate_crossover(prices, short, long, 0, 2) == SimulationOutcome(INITIAL_CAPITAL, 0)


def test_cross_after_first_day_buys():
    prices = np.full(4, 10.0)
    short = np.array([-1.0, -1.0, 1.0, 1.0])
    long = np.zeros(4)

    assert simulate_crossover(prices, short, long, 0, 3) == SimulationOutcome(INITIAL_CAPITAL, 2)
    assert simulate_crossover(prices, short, long, 2, 3) == SimulationOutcome(INITIAL_CAPITAL, 0)


def test_forced_liquidation_at_end(cross_prices, cross_mas):
    trades = []

    outcome = simulate_crossover(cross_prices, *cross_mas, 0, 5, trade_log=trades)

    assert outcome == SimulationOutcome(1.0 + 1111 * 13.0, 2)
    assert trades[-1] == {'index': 5, 'type': 'SELL', 'price': 13.0, 'shares': 1111,
                          'cash_after': 14444.0, 'forced': True}


def test_death_cross_on_last_day_needs_no_forced_sale(cross_prices, cross_mas):
    trades = []

    outcome = simulate_crossover(cross_prices, *cross_mas, 0, 6, trade_log=trades)

    assert outcome == SimulationOutcome(12222.0, 2)
    assert not any(t['forced'] for t in trades)


def test_warm_up_days_are_skipped(cross_prices, cross_mas):
    assert simulate_crossover(cross_prices, *cross_mas, 2, 9) == simulate_crossover(cross_prices, *cross_mas, 0, 9)


@pytest.mark.parametrize("start, end", [(5, 5), (7, 3), (20, 30), (-5, 0), (9, 100)])
def test_degenerate_ranges(cross_prices, cross_mas, start, end):
    assert simulate_crossover(cross_prices, *cross_mas, start, end) == SimulationOutcome(INITIAL_CAPITAL, 0)


def test_empty_series():
    empty = np.array([])
    assert simulate_crossover(empty, empty, empty, 0, 10) == SimulationOutcome(INITIAL_CAPITAL, 0)


def test_end_is_clamped(cross_prices, cross_mas):
    assert simulate_crossover(cross_prices, *cross_mas, 0, 500) == SimulationOutcome(12222.0, 4)


def test_unaffordable_share_is_not_a_trade(cross_prices, cross_mas):
    assert simulate_crossover(cross_prices, *cross_mas, 0, 9, initial_capital=5.0) == SimulationOutcome(5.0, 0)


def test_custom_initial_capital(cross_prices, cross_mas):
    assert simulate_crossover(cross_prices, *cross_mas, 0, 9, initial_capital=1000.0) == SimulationOutcome(1222.0, 4)


@pytest.mark.parametrize("short_period, long_period", [(1, 2), (2, 5), (5, 2), (3, 3), (1, 20)])
def test_flat_prices_never_trade(short_period, long_period):
    prices = np.full(40, 42.5)

    outcome = simulate_crossover(prices, calculate_sma(prices, short_period), calculate_sma(prices, long_period), 0, 39)

    assert outcome.final_capital == INITIAL_CAPITAL
    assert outcome.trade_count == 0


def test_same_period_never_trades(cross_prices):
    sma = calculate_sma(cross_prices, 2)
    assert simulate_crossover(cross_prices, sma, sma, 0, 9) == SimulationOutcome(INITIAL_CAPITAL, 0)


def test_zero_price_never_buys():
    prices = np.array([5.0, 5.0, 0.0, 5.0])
    short = np.array([-1.0, -1.0, 1.0, 1.0])
    long = np.zeros(4)

    assert simulate_crossover(prices, short, long, 0, 3) == SimulationOutcome(INITIAL_CAPITAL, 0)
