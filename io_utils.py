import os

import pandas as pd

RANK_COLUMNS = ['rank', 'short', 'long', 'final_capital', 'return_pct', 'trades']


def ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def write_rank_header(fout):
    fout.write(','.join(RANK_COLUMNS) + "\n\n")


def format_ranked_rows(ranked) -> pd.DataFrame:
    # capital/return carry a leading apostrophe so spreadsheets keep the full text
    return pd.DataFrame({
        'rank': [e.rank for e in ranked],
        'short': [e.short_period for e in ranked],
        'long': [e.long_period for e in ranked],
        'final_capital': [f"'{e.final_capital:.30f}" for e in ranked],
        'return_pct': [f"'{e.return_pct:.4f}" for e in ranked],
        'trades': [e.trade_count for e in ranked],
    }, columns=RANK_COLUMNS)


def append_ranked_block(fout, label: str, ranked, is_first: bool):
    """
    Append one symbol's ranked rows to an open output file.

    Every symbol after the first is introduced by a `LABEL,,,,,` row and a
    blank line. Each block ends with a blank line.
    """
    if not is_first:
        fout.write(f"{label}" + "," * (len(RANK_COLUMNS) - 1) + "\n\n")
    format_ranked_rows(ranked).to_csv(fout, header=False, index=False, lineterminator="\n")
    fout.write("\n")


def save_grid_comparison(results_df: pd.DataFrame, symbol: str, root: str = 'results') -> str:
    comp_dir = os.path.join(root, 'parameter_comparison')
    ensure_dir(comp_dir)
    comp_path = os.path.join(comp_dir, f"{symbol}_grid_comparison.csv")
    results_df.to_csv(comp_path, index=False, encoding='utf-8')
    print(f" Grid comparison saved at: {comp_path}")
    return comp_path
