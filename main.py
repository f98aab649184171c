import argparse
import logging
import os
import sys

from analysis import run_symbol
from config import DataConfig, OutputConfig, SearchConfig, TradeConfig
from data import fetch_multistock_data, list_symbols, load_multistock_csv
from io_utils import append_ranked_block, ensure_dir, write_rank_header

logger = logging.getLogger(__name__)


def run(data_cfg: DataConfig, search_cfg: SearchConfig, trade_cfg: TradeConfig, out_cfg: OutputConfig,
        download: bool = False) -> int:
    try:
        if download:
            print(f"Fetching data for {', '.join(data_cfg.symbols)}...")
            table = fetch_multistock_data(data_cfg.symbols, data_cfg.download_start, data_cfg.download_end,
                                          csv_path=data_cfg.csv_path, use_adjusted=data_cfg.use_adjusted)
        else:
            table = load_multistock_csv(data_cfg.csv_path)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load %s: %s", data_cfg.csv_path, exc)
        return 1

    print(f"Stocks: {len(list_symbols(table))}")
    print(f"Days: {len(table)}")

    out_dir = os.path.dirname(out_cfg.output_file)
    if out_dir:
        ensure_dir(out_dir)
    try:
        fout = open(out_cfg.output_file, 'w', encoding='utf-8', newline='')
    except OSError as exc:
        logger.error("Cannot open output file %s: %s", out_cfg.output_file, exc)
        return 1

    with fout:
        write_rank_header(fout)
        first = True
        for symbol in data_cfg.symbols:
            try:
                report = run_symbol(table, symbol,
                                    date_filter=data_cfg.date_filter,
                                    search=search_cfg,
                                    initial_capital=trade_cfg.initial_capital,
                                    top_n=out_cfg.top_n,
                                    output=out_cfg)
            except (KeyError, ValueError) as exc:
                logger.error("Skipping %s: %s", symbol, exc)
                first = False
                continue
            append_ranked_block(fout, symbol, report.ranked, is_first=first)
            first = False
            print(f"Written: {symbol}")

    print(f"\nAll done, output file: {out_cfg.output_file}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    defaults = DataConfig()
    parser = argparse.ArgumentParser(description="Brute-force SMA crossover search over short/long periods")
    parser.add_argument("--csv", default=defaults.csv_path, help="wide price table: Date,SYM1,SYM2,...")
    parser.add_argument("--symbols", nargs="+", default=list(defaults.symbols))
    parser.add_argument("--date-filter", default=defaults.date_filter,
                        help="substring selecting the evaluation dates, e.g. /2024")
    parser.add_argument("--max-period", type=int, default=SearchConfig.max_period)
    parser.add_argument("--top-n", type=int, default=OutputConfig.top_n)
    parser.add_argument("--initial-capital", type=float, default=TradeConfig.initial_capital)
    parser.add_argument("--output", default=OutputConfig.output_file)
    parser.add_argument("--results-dir", default=OutputConfig.results_dir)
    parser.add_argument("--workers", type=int, default=1, help="processes for the grid sweep")
    parser.add_argument("--save-comparison", action="store_true", help="write the full grid per symbol")
    parser.add_argument("--save-plots", action="store_true", help="heatmap and best-pair chart per symbol")
    parser.add_argument("--download", action="store_true", help="fetch closes with yfinance into --csv first")
    parser.add_argument("--start", default=None, help="download start date (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="download end date (YYYY-MM-DD)")
    parser.add_argument("--progress", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        data_cfg = DataConfig(csv_path=args.csv, symbols=args.symbols, date_filter=args.date_filter,
                              download_start=args.start, download_end=args.end)
        search_cfg = SearchConfig(max_period=args.max_period, workers=args.workers, show_progress=args.progress)
        trade_cfg = TradeConfig(initial_capital=args.initial_capital)
        out_cfg = OutputConfig(results_dir=args.results_dir, output_file=args.output, top_n=args.top_n,
                               save_comparison=args.save_comparison, save_plots=args.save_plots)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    return run(data_cfg, search_cfg, trade_cfg, out_cfg, download=args.download)


if __name__ == "__main__":
    sys.exit(main())
