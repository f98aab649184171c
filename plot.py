import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

plt.style.use('seaborn-v0_8-whitegrid')


def _finish(fig, save_path):
    plt.tight_layout()
    if save_path:
        folder = os.path.dirname(save_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
    else:
        plt.show()


def plot_capital_heatmap(results_df, symbol, save_path=None):
    """Final capital over the (short, long) grid; rows are short periods."""
    grid = results_df.pivot(index='short_period', columns='long_period', values='final_capital')

    fig, ax = plt.subplots(figsize=(12, 10))
    im = ax.imshow(grid.to_numpy(), origin='lower', aspect='auto', cmap='RdYlGn',
                   extent=(grid.columns.min() - 0.5, grid.columns.max() + 0.5,
                           grid.index.min() - 0.5, grid.index.max() + 0.5))
    fig.colorbar(im, ax=ax, label='Final capital')

    best = results_df.loc[results_df['final_capital'].idxmax()]
    ax.scatter([best['long_period']], [best['short_period']], marker='*', s=250, color='black',
               label=f"Best {int(best['short_period'])}/{int(best['long_period'])}")

    ax.set_title(f'{symbol} SMA Grid: Final Capital', fontsize=16, pad=20)
    ax.set_xlabel('Long period', fontsize=14)
    ax.set_ylabel('Short period', fontsize=14)
    ax.legend(fontsize=12)
    _finish(fig, save_path)
    return fig


def plot_strategy(
    series,
    ma_short,
    ma_long,
    start_idx,
    end_idx,
    short_window,
    long_window,
    trades=None,
    annotate=True,
    save_path=None
):
    """
    Price and both averages over the evaluation window, with executed trades.

    `trades` is the list filled by simulate_crossover(trade_log=...); each
    entry's 'index' points into `series`. Forced liquidations use a hollow
    marker.
    """
    window = slice(start_idx, end_idx + 1)
    x = pd.to_datetime(pd.Series(series.dates[window]), errors='coerce', format='mixed')
    if x.isna().any():
        x = pd.Series(np.arange(start_idx, end_idx + 1))

    fig, ax = plt.subplots(figsize=(16, 10))
    ax.plot(x, series.prices[window], label='Close', linewidth=2, color='blue', alpha=0.7)
    ax.plot(x, ma_short[window], label=f'{short_window}-Day MA', linewidth=2, color='orange')
    ax.plot(x, ma_long[window], label=f'{long_window}-Day MA', linewidth=2, color='green')

    for t in trades or []:
        pos = t['index'] - start_idx
        if not 0 <= pos < len(x):
            continue
        is_buy = t['type'] == 'BUY'
        color = 'green' if is_buy else 'red'
        ax.scatter([x.iloc[pos]], [t['price']], marker='^' if is_buy else 'v', s=120, zorder=6,
                   color=color if not t.get('forced') else 'none', edgecolors=color)
        if annotate:
            ax.annotate(
                f"{t['type']} {t['shares']}@{t['price']:.2f}",
                xy=(x.iloc[pos], t['price']),
                xytext=(0, 12 if is_buy else -30), textcoords='offset points',
                fontsize=8, color=color,
                bbox=dict(boxstyle='round,pad=0.25', fc='white', ec=color, alpha=0.85)
            )

    ax.set_title(f'{series.symbol} SMA {short_window}/{long_window} Crossover', fontsize=16, pad=20)
    ax.set_xlabel('Date', fontsize=14)
    ax.set_ylabel('Price', fontsize=14)
    ax.legend(fontsize=12)
    plt.xticks(rotation=45)
    ax.grid(True, linestyle='--', alpha=0.6)
    _finish(fig, save_path)
    return fig
