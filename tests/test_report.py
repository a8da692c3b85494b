import pandas as pd

from mmc.models import SearchBounds, UnitCell
from mmc.report import (
    ACCEPTED_COLOR,
    WINNER_COLOR,
    center,
    fit_columns,
    fit_rows,
    grid_frame,
    render_summary,
    render_table,
)
from mmc.search import build_grid, build_outputs, run_search

CELL = UnitCell(capacitance_f=0.15e-6, voltage_rating_v=1200.0)


def test_center_pads_both_sides():
    assert center("abc", 11) == "    abc    "
    assert center("ab", 7) == "  ab   "
    assert center("", 6, "=") == "======"
    assert len(center("MMC Calculator v1.2.0", 51)) == 51


def test_center_text_wider_than_width():
    assert center("abcdef", 4) == " abcdef "


def test_fit_columns_and_rows():
    assert fit_columns(137) == 10
    assert fit_columns(80) == 5
    assert fit_columns(10) == 1
    assert fit_rows(37) == 30
    assert fit_rows(3) == 1


def test_plain_table_layout():
    grid = build_grid(CELL, SearchBounds(max_series=3, max_parallel=2))
    lines = render_table(grid, title="MMC Calculator v1.2.0", color=False).splitlines()

    assert lines[0] == "+" + "-" * 39 + "+"
    assert "Capacitance in nF" in lines[2]
    assert lines[3] == "+-----+---------+-----------+-----------+"
    assert lines[4] == "| SER | VOLTAGE |   PAR 1   |   PAR 2   |"
    assert lines[6] == "|   1 |    1200 |     150.0 |     300.0 |"
    assert lines[8] == "|   3 |    3600 |      50.0 |     100.0 |"
    assert lines[-1] == lines[3]
    assert {len(line) for line in lines} == {41}


def test_table_trims_columns():
    grid = build_grid(CELL, SearchBounds(max_series=2, max_parallel=8))
    lines = render_table(grid, title="t", color=False, max_columns=3).splitlines()
    assert lines[4].count("PAR") == 3
    assert {len(line) for line in lines} == {17 + 3 * 12}


def test_markers_without_color(scenario_a):
    res = run_search(scenario_a)
    out = build_outputs(res)
    winners = [(w.series, w.parallel) for w in out.winners]
    text = render_table(res.grid, title="t", author="MMCArray", color=False, winners=winners)
    rows = {line.split("|")[1].strip(): line for line in text.splitlines() if line.startswith("|   ") or line.startswith("|  ")}

    # 11S x 1P is the per-parallel winner; 10S x 1P is accepted but not a winner
    assert rows["11"].split("|")[3] == "      13.6#"
    assert rows["10"].split("|")[3] == "      15.0*"
    assert "*" not in rows["1"]


def test_colors_wrap_cells(scenario_a):
    res = run_search(scenario_a)
    text = render_table(res.grid, title="t", color=True, winners=[(11, 1)])
    assert WINNER_COLOR in text
    assert ACCEPTED_COLOR in text
    assert "#" not in text


def test_summary_lists_both_policies(scenario_a):
    out = build_outputs(run_search(scenario_a))
    text = render_summary(out)
    assert "Closest match:" in text
    assert "11S x 1P (11 caps)" in text
    assert "Recommended (global):" in text
    assert "no match" not in text


def test_summary_no_match(scenario_a):
    inputs = scenario_a.model_copy(
        update={"target": scenario_a.target.model_copy(update={"voltage_floor_v": 1e9})}
    )
    text = render_summary(build_outputs(run_search(inputs)))
    assert text.count("no match") == 3


def test_grid_frame():
    grid = build_grid(CELL, SearchBounds(max_series=4, max_parallel=3))
    df = grid_frame(grid)
    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ["voltage_v", "par_1_f", "par_2_f", "par_3_f"]
    assert df.index.name == "series"
    assert df.loc[4, "voltage_v"] == 4800.0
    assert df.shape == (4, 4)


def test_summary_values_line_up(scenario_a):
    for policy in ("global", "per_parallel"):
        inputs = scenario_a.model_copy(update={"policy": policy})
        lines = render_summary(build_outputs(run_search(inputs))).splitlines()
        starts = {len(line) - len(line.split(":", 1)[1].lstrip()) for line in lines}
        assert len(starts) == 1
