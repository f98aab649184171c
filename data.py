import io
import logging
import os
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)

DATE_COLUMN = 'Date'


@dataclass(frozen=True)
class PriceSeries:
    """One security's closing prices with the aligned date labels."""
    symbol: str
    dates: Tuple[str, ...]
    prices: np.ndarray

    def __post_init__(self):
        if len(self.dates) != len(self.prices):
            raise ValueError(
                f"{self.symbol}: {len(self.dates)} dates but {len(self.prices)} prices"
            )

    def __len__(self):
        return len(self.prices)


def parse_price(text: str) -> float:
    """
    Parse one price cell. Decimal, `inf`/`nan` and `0x`-prefixed hex floats
    are accepted; anything else raises ValueError.
    """
    try:
        return float(text)
    except ValueError:
        if text.lower().lstrip('+-').startswith('0x'):
            return float.fromhex(text)
        raise


def _read_text(source) -> str:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).decode('utf-8-sig')
    if isinstance(source, (str, os.PathLike)):
        if not os.path.exists(source):
            raise FileNotFoundError(f"Cannot open input file: {source}")
        with open(source, encoding='utf-8-sig', newline='') as f:
            return f.read()
    content = source.read()
    return content.decode('utf-8-sig') if isinstance(content, bytes) else content


def _drop_trailing_comma(line: str) -> str:
    # one trailing separator closes the record, it does not open an empty field
    return line[:-1] if line.endswith(',') else line


def load_multistock_csv(source) -> pd.DataFrame:
    """
    Read a wide price table: first column is the date label, one column per
    symbol. `source` may be a path, a file-like object or raw bytes.

    A single trailing comma on any line is ignored. Rows with a wrong field
    count or an unparsable price are skipped with a warning. Date labels are
    kept as the raw (trimmed) strings.
    """
    text = '\n'.join(_drop_trailing_comma(line) for line in _read_text(source).splitlines())

    def _skip_bad_line(fields):
        logger.warning("Field count mismatch, skipping row: %s", ','.join(fields))
        return None

    try:
        raw = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True,
                          on_bad_lines=_skip_bad_line, engine='python')
    except pd.errors.EmptyDataError:
        raise ValueError(f"Input file is empty: {source}")

    raw.columns = [str(c).strip() for c in raw.columns]
    if len(raw.columns) < 2:
        raise ValueError(f"Header has too few columns: {','.join(raw.columns)}")

    symbols = list(raw.columns[1:])
    raw = raw.map(lambda v: v.strip() if isinstance(v, str) else v)

    keep = []
    for _, row in raw.iterrows():
        values = row.tolist()
        # short rows come back padded with NaN
        if any(pd.isna(v) for v in values):
            logger.warning("Field count mismatch, skipping row: %s",
                           ','.join(v for v in values if not pd.isna(v)))
            keep.append(False)
            continue
        try:
            for v in values[1:]:
                parse_price(v)
        except ValueError:
            logger.warning("Cannot parse price %r, skipping row: %s", v, ','.join(values))
            keep.append(False)
            continue
        keep.append(True)

    table = raw[pd.Series(keep, index=raw.index, dtype=bool)].copy()
    table = table.rename(columns={raw.columns[0]: DATE_COLUMN})
    for sym in symbols:
        table[sym] = table[sym].map(parse_price).astype(float)
    return table.reset_index(drop=True)


def list_symbols(table: pd.DataFrame):
    return [c for c in table.columns if c != DATE_COLUMN]


def select_symbol(table: pd.DataFrame, symbol: str) -> PriceSeries:
    if symbol not in list_symbols(table):
        raise KeyError(f"Symbol not found: {symbol}")
    if table.empty:
        raise ValueError(f"No price data for {symbol}")
    return PriceSeries(
        symbol=symbol,
        dates=tuple(table[DATE_COLUMN].tolist()),
        prices=table[symbol].to_numpy(dtype=float),
    )


def find_date_range(dates, pattern: str):
    """First and last index whose date label contains `pattern`."""
    start = end = None
    for i, label in enumerate(dates):
        if pattern in label:
            if start is None:
                start = i
            end = i
    if start is None:
        raise ValueError(f"No dates matching {pattern!r}")
    return start, end


def fetch_multistock_data(symbols, start_date=None, end_date=None, csv_path='multistocks.csv',
                          use_adjusted=True, save_local=True) -> pd.DataFrame:
    """Download daily closes and write them in the wide layout read by load_multistock_csv."""
    if save_local and os.path.exists(csv_path):
        return load_multistock_csv(csv_path)

    symbols = list(symbols)
    raw = yf.download(symbols, start=start_date, end=end_date, auto_adjust=False, progress=False)
    if raw is None or raw.empty:
        raise ValueError(f"No data found for {', '.join(symbols)}.")
    raw = raw.sort_index()

    close_col = 'Adj Close' if use_adjusted and 'Adj Close' in raw.columns.get_level_values(0) else 'Close'
    closes = raw[close_col]
    if isinstance(closes, pd.Series):
        closes = closes.to_frame(symbols[0])
    closes = closes[[s for s in symbols if s in closes.columns]].apply(pd.to_numeric, errors='coerce')
    closes = closes.dropna(how='any')

    table = closes.reset_index(drop=True)
    table.insert(0, DATE_COLUMN, [f"{d.month}/{d.day}/{d.year}" for d in closes.index])

    if save_local:
        folder = os.path.dirname(csv_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        table.to_csv(csv_path, index=False)
        logger.info("Saved %d rows for %d symbols to %s", len(table), len(closes.columns), csv_path)

    return table
