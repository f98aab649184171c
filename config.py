# sma_search/config.py
from dataclasses import dataclass
from typing import Optional, Tuple

INITIAL_CAPITAL = 10000.0
MAX_PERIOD = 256
TOP_N = 20
DATE_FILTER = "/2024"
TARGET_SYMBOLS = ("AAPL", "MMM", "KO", "V", "CAT")
INPUT_FILE = "multistocks.csv"
OUTPUT_FILE = "sma_rank_all.csv"


@dataclass
class DataConfig:
    csv_path: str = INPUT_FILE
    symbols: Tuple[str, ...] = TARGET_SYMBOLS
    date_filter: str = DATE_FILTER   # substring matched against raw date labels
    download_start: Optional[str] = None
    download_end: Optional[str] = None
    use_adjusted: bool = True

    def __post_init__(self):
        self.symbols = tuple(self.symbols)
        if not self.date_filter:
            raise ValueError("date_filter must not be empty")


@dataclass
class SearchConfig:
    max_period: int = MAX_PERIOD     # upper bound for both short and long sweeps
    workers: int = 1
    show_progress: bool = False

    def __post_init__(self):
        if self.max_period < 1:
            raise ValueError(f"max_period must be >= 1, got {self.max_period}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")


@dataclass
class TradeConfig:
    initial_capital: float = INITIAL_CAPITAL

    def __post_init__(self):
        if self.initial_capital <= 0:
            raise ValueError(f"initial_capital must be positive, got {self.initial_capital}")


@dataclass
class OutputConfig:
    results_dir: str = "results"
    output_file: str = OUTPUT_FILE
    top_n: int = TOP_N
    save_comparison: bool = False
    save_plots: bool = False

    def __post_init__(self):
        if self.top_n < 0:
            raise ValueError(f"top_n must be >= 0, got {self.top_n}")
