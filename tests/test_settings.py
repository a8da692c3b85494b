import logging

import pytest

from mmc.settings import (
    SettingsError,
    inputs_to_settings,
    load_settings,
    prompt_float,
    save_settings,
    settings_to_inputs,
)


def test_save_writes_scientific_notation(tmp_path):
    path = tmp_path / "mmc.cfg"
    save_settings(path, {"cell_capacitance": 0.15e-6, "cell_voltage": 1200})
    assert path.read_text() == "cell_capacitance\t1.500000e-07\ncell_voltage\t1.200000e+03\n"


def test_load_reads_saved_file(tmp_path):
    path = tmp_path / "mmc.cfg"
    values = {"target_capacitance": 14.31e-9, "target_voltage": 9000.0, "max_series": 80.0}
    save_settings(path, values)
    assert load_settings(path) == pytest.approx(values)


def test_load_skips_blank_and_comment_lines(tmp_path):
    path = tmp_path / "mmc.cfg"
    path.write_text("# MMC settings\n\ncell_voltage\t1.2e3\ntolerance   1e-9\n")
    assert load_settings(path) == {"cell_voltage": 1200.0, "tolerance": 1e-9}


def test_load_reports_line_of_bad_value(tmp_path):
    path = tmp_path / "mmc.cfg"
    path.write_text("cell_voltage\t1.2e3\ntolerance\tlots\n")
    with pytest.raises(SettingsError) as exc:
        load_settings(path)
    assert exc.value.line_no == 2
    assert ":2:" in str(exc.value)


def test_load_rejects_lines_without_value(tmp_path):
    path = tmp_path / "mmc.cfg"
    path.write_text("cell_voltage\n")
    with pytest.raises(SettingsError):
        load_settings(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.cfg")


def test_unknown_key_is_kept_and_logged(tmp_path, caplog):
    path = tmp_path / "mmc.cfg"
    path.write_text("coil_turns\t1.0e1\n")
    with caplog.at_level(logging.WARNING, logger="mmc.settings"):
        values = load_settings(path)
    assert values == {"coil_turns": 10.0}
    assert "Unknown settings key" in caplog.text
    assert settings_to_inputs(values) == {}


def test_settings_nest_into_sections():
    data = settings_to_inputs(
        {"cell_capacitance": 1e-6, "target_voltage": 100.0, "max_series": 5.0, "max_parallel": 4.0}
    )
    assert data == {
        "unit_cell": {"capacitance_f": 1e-6},
        "target": {"voltage_floor_v": 100.0},
        "bounds": {"max_series": 5, "max_parallel": 4},
    }
    assert isinstance(data["bounds"]["max_series"], int)


def test_sections_flatten_back():
    data = {
        "unit_cell": {"capacitance_f": 1e-6, "voltage_rating_v": 100.0},
        "bounds": {"max_series": 5, "max_parallel": 4},
    }
    assert inputs_to_settings(data) == {
        "cell_capacitance": 1e-6,
        "cell_voltage": 100.0,
        "max_series": 5.0,
        "max_parallel": 4.0,
    }


def test_prompt_float_asks_again(capsys):
    answers = iter(["abc", "-1", "2000", "5e-9"])
    v = prompt_float("C: ", min_v=0.0, max_v=1000.0, input_fn=lambda _: next(answers))
    assert v == 5e-9
    err = capsys.readouterr().err
    assert "Please enter a number." in err
    assert "Must be >= 0.0." in err
    assert "Must be <= 1000.0." in err


@pytest.mark.parametrize("text", ["nan", "inf", "-inf", "2.5"])
def test_bounds_must_be_whole_numbers(tmp_path, text):
    path = tmp_path / "mmc.cfg"
    path.write_text(f"cell_voltage\t1.2e3\nmax_series\t{text}\n")
    with pytest.raises(SettingsError) as exc:
        load_settings(path)
    assert exc.value.line_no == 2
    assert "whole number" in str(exc.value)


def test_fractional_values_allowed_outside_bounds(tmp_path):
    path = tmp_path / "mmc.cfg"
    path.write_text("tolerance\t2.5e-9\nmax_parallel\t4.0e+00\n")
    assert load_settings(path) == {"tolerance": 2.5e-9, "max_parallel": 4.0}
