import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from signals import calculate_sma

# short=1 / long=3: golden cross at 3 and 9, death cross at 6
CROSS_PRICES = [10.0, 9.0, 8.0, 9.0, 12.0, 13.0, 11.0, 8.0, 7.0, 8.0]
CROSS_DATES = ["12/28/2023", "12/29/2023", "1/2/2024", "1/3/2024", "1/4/2024",
               "1/5/2024", "1/8/2024", "1/9/2024", "1/10/2024", "1/11/2024"]

SPIKE_PRICES = [10.0, 10.0, 10.0, 10.0, 20.0, 10.0, 10.0, 10.0, 10.0]


@pytest.fixture
def cross_prices():
    return np.array(CROSS_PRICES)


@pytest.fixture
def cross_mas(cross_prices):
    return calculate_sma(cross_prices, 1), calculate_sma(cross_prices, 3)


@pytest.fixture
def spike_prices():
    return np.array(SPIKE_PRICES)


@pytest.fixture
def price_table():
    falling = [20.0 - i for i in range(len(CROSS_DATES))]
    return pd.DataFrame({"Date": CROSS_DATES, "AAA": CROSS_PRICES, "BBB": falling})


@pytest.fixture
def price_csv(tmp_path, price_table):
    path = tmp_path / "multistocks.csv"
    price_table.to_csv(path, index=False)
    return path


@pytest.fixture
def cross_dates():
    return tuple(CROSS_DATES)
