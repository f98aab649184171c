import io

import pandas as pd

from analysis import RankedEntry
from io_utils import append_ranked_block, save_grid_comparison, write_rank_header

ZEROS = "0" * 30


def test_sectioned_output():
    fout = io.StringIO()

    write_rank_header(fout)
    append_ranked_block(fout, "AAA", [
        RankedEntry(1, 1, 3, 12222.0, 4, 22.22),
        RankedEntry(2, 2, 9, 10000.0, 0, 0.0),
    ], is_first=True)
    append_ranked_block(fout, "BBB", [RankedEntry(1, 2, 5, 9500.0, 2, -5.0)], is_first=False)

    assert fout.getvalue() == (
        "rank,short,long,final_capital,return_pct,trades\n"
        "\n"
        f"1,1,3,'12222.{ZEROS},'22.2200,4\n"
        f"2,2,9,'10000.{ZEROS},'0.0000,0\n"
        "\n"
        "BBB,,,,,\n"
        "\n"
        f"1,2,5,'9500.{ZEROS},'-5.0000,2\n"
        "\n"
    )


def test_capital_keeps_full_precision():
    fout = io.StringIO()

    append_ranked_block(fout, "AAA", [RankedEntry(1, 4, 8, 0.1, 1, -99.999)], is_first=True)

    assert fout.getvalue() == "1,4,8,'0.100000000000000005551115123126,'-99.9990,1\n\n"


def test_empty_block_still_has_label():
    fout = io.StringIO()

    append_ranked_block(fout, "CCC", [], is_first=False)

    assert fout.getvalue() == "CCC,,,,,\n\n\n"


def test_save_grid_comparison(tmp_path):
    frame = pd.DataFrame({"short_period": [1, 2], "long_period": [2, 1],
                          "final_capital": [10100.0, 9900.0], "trade_count": [2, 2]})

    path = save_grid_comparison(frame, "AAA", root=str(tmp_path))

    assert path.endswith("AAA_grid_comparison.csv")
    pd.testing.assert_frame_equal(pd.read_csv(path), frame)
