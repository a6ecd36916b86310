# tests/test_cli.py

import json

import pytest
import numpy as np
from numpy.testing import assert_equal
from pathlib import Path
from click.testing import CliRunner

from stretchkit.cli.main import cli
from stretchkit.version import __version__

# --- Test Fixtures ---

@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Runs every command from tmp_path with file logging switched off."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STRETCHKIT_LOGGING__LOG_FILE_ENABLED", "false")

@pytest.fixture
def runner() -> CliRunner:
    """Provides a Click CliRunner instance."""
    return CliRunner()

@pytest.fixture
def mock_audio_load_save(mocker):
    """Mocks load_audio and save_audio used by the stretch command."""
    sr = 16000
    dummy_audio = np.random.default_rng(0).standard_normal(sr * 3).astype(np.float32)
    mock_load = mocker.patch("stretchkit.cli.stretch_cmd.load_audio", return_value=(dummy_audio, sr))
    mock_save = mocker.patch("stretchkit.cli.stretch_cmd.save_audio")
    return mock_load, mock_save, dummy_audio, sr

# --- Group ---

def test_cli_help(runner: CliRunner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage: stretchkit [OPTIONS] COMMAND [ARGS]..." in result.output
    for command in ("stretch", "batch", "params", "onsets", "pitch"):
        assert command in result.output

def test_cli_version(runner: CliRunner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"stretchkit, version {__version__}" in result.output.lower()

# --- stretch ---

def test_stretch_cmd(runner: CliRunner, mock_audio_load_save, tmp_path: Path, mocker):
    mock_load, mock_save, dummy_audio, sr = mock_audio_load_save
    stretched_audio = dummy_audio[: len(dummy_audio) // 2]
    mock_core_stretch = mocker.patch("stretchkit.cli.stretch_cmd.time_stretch", return_value=stretched_audio)
    input_file = tmp_path / "input.wav"
    input_file.touch()
    output_file = tmp_path / "output_stretched.wav"

    result = runner.invoke(cli, ["stretch", str(input_file), "--output", str(output_file), "--rate", "2.0"])

    assert result.exit_code == 0, f"Output:\n{result.output}\nException:\n{result.exception}"
    assert "Successfully applied time stretch" in result.output
    mock_load.assert_called_once_with(input_file, sr=None, mono=True)
    mock_core_stretch.assert_called_once()
    _, call_kwargs = mock_core_stretch.call_args
    assert_equal(call_kwargs.get('y'), dummy_audio)
    assert call_kwargs.get('sample_rate') == sr
    assert call_kwargs.get('speed_ratio') == 2.0
    mock_save.assert_called_once()
    save_args, save_kwargs = mock_save.call_args
    assert_equal(save_args[0], stretched_audio)
    assert save_args[1] == sr
    assert save_args[2] == output_file
    assert save_kwargs.get('subtype') == "PCM_16"

def test_stretch_cmd_options_and_config(runner: CliRunner, mock_audio_load_save, tmp_path: Path, mocker, monkeypatch):
    mock_load, mock_save, dummy_audio, sr = mock_audio_load_save
    mocker.patch("stretchkit.cli.stretch_cmd.time_stretch", return_value=dummy_audio)
    monkeypatch.setenv("STRETCHKIT_DEFAULTS__DEFAULT_OUTPUT_SUBTYPE", "PCM_24")
    input_file = tmp_path / "input.wav"
    input_file.touch()
    output_file = tmp_path / "out.wav"

    result = runner.invoke(cli, ["stretch", str(input_file), "-o", str(output_file), "--rate", "0.75", "--sr", "22050"])
    assert result.exit_code == 0, result.output
    mock_load.assert_called_once_with(input_file, sr=22050, mono=True)
    assert mock_save.call_args[1].get('subtype') == "PCM_24"

    result = runner.invoke(cli, ["stretch", str(input_file), "-o", str(output_file), "--rate", "0.75", "--subtype", "float"])
    assert result.exit_code == 0, result.output
    assert mock_save.call_args[1].get('subtype') == "FLOAT"

@pytest.mark.parametrize("rate", ["0", "-1.5"])
def test_stretch_cmd_invalid_rate(runner: CliRunner, mock_audio_load_save, tmp_path: Path, rate):
    mock_load, mock_save, _, _ = mock_audio_load_save
    input_file = tmp_path / "input.wav"
    input_file.touch()
    result = runner.invoke(cli, ["stretch", str(input_file), "-o", str(tmp_path / "o.wav"), "--rate", rate])
    assert result.exit_code == 2
    assert "Stretch rate must be positive" in result.output
    mock_load.assert_not_called()
    mock_save.assert_not_called()

def test_stretch_cmd_core_value_error(runner: CliRunner, mock_audio_load_save, tmp_path: Path, mocker):
    _, mock_save, _, _ = mock_audio_load_save
    mocker.patch("stretchkit.cli.stretch_cmd.time_stretch", side_effect=ValueError("Sample rate 40 Hz is too low"))
    input_file = tmp_path / "input.wav"
    input_file.touch()
    result = runner.invoke(cli, ["stretch", str(input_file), "-o", str(tmp_path / "o.wav"), "--rate", "1.5"])
    assert result.exit_code == 2
    assert "too low" in result.output
    mock_save.assert_not_called()

def test_stretch_cmd_missing_input(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(cli, ["stretch", str(tmp_path / "missing.wav"), "-o", str(tmp_path / "o.wav"), "--rate", "1.5"])
    assert result.exit_code == 2
    assert "does not exist" in result.output

def test_stretch_cmd_end_to_end(runner: CliRunner, tmp_path: Path):
    import soundfile as sf
    sr = 16000
    t = np.arange(sr * 2) / sr
    sf.write(tmp_path / "tone.wav", 0.5 * np.sin(2 * np.pi * 300.0 * t), sr, subtype='FLOAT')

    result = runner.invoke(cli, ["stretch", str(tmp_path / "tone.wav"), "-o", str(tmp_path / "fast.wav"),
                                 "--rate", "2.0", "--subtype", "FLOAT"])
    assert result.exit_code == 0, result.output
    fast, fast_sr = sf.read(str(tmp_path / "fast.wav"), dtype='float32')
    assert fast_sr == sr
    assert len(fast) < sr * 2

# --- batch ---

def test_batch_cmd(runner: CliRunner, tmp_path: Path, mocker):
    mock_batch = mocker.patch("stretchkit.cli.batch_cmd.process_batch", return_value=(4, 1))
    input_dir = tmp_path / "in"
    input_dir.mkdir()
    output_dir = tmp_path / "out"

    result = runner.invoke(cli, ["batch", str(input_dir), "-o", str(output_dir), "--rate", "1.25", "--suffix", "_fast"])
    assert result.exit_code == 0, result.output
    assert "4 processed, 1 skipped" in result.output
    mock_batch.assert_called_once_with(
        input_dir=str(input_dir),
        output_dir=output_dir,
        speed_ratio=1.25,
        sr=None,
        subtype="PCM_16",
        suffix="_fast",
    )

def test_batch_cmd_default_output_dir(runner: CliRunner, tmp_path: Path, mocker, monkeypatch):
    monkeypatch.setenv("STRETCHKIT_PATHS__OUTPUT_DIR", str(tmp_path / "configured"))
    mock_batch = mocker.patch("stretchkit.cli.batch_cmd.process_batch", return_value=(0, 0))
    input_dir = tmp_path / "in"
    input_dir.mkdir()
    result = runner.invoke(cli, ["batch", str(input_dir), "--rate", "1.5"])
    assert result.exit_code == 0, result.output
    assert mock_batch.call_args[1]["output_dir"] == (tmp_path / "configured").resolve()
    assert mock_batch.call_args[1]["suffix"] == "_stretched"

def test_batch_cmd_invalid_rate(runner: CliRunner, tmp_path: Path, mocker):
    mock_batch = mocker.patch("stretchkit.cli.batch_cmd.process_batch")
    result = runner.invoke(cli, ["batch", str(tmp_path), "--rate", "0"])
    assert result.exit_code == 2
    mock_batch.assert_not_called()

# --- params ---

def test_params_cmd_table(runner: CliRunner):
    result = runner.invoke(cli, ["params", "--sample-rate", "44100", "--rate", "1.5"])
    assert result.exit_code == 0, result.output
    assert "window_size" in result.output
    assert "882" in result.output
    assert "661" in result.output

def test_params_cmd_json(runner: CliRunner):
    result = runner.invoke(cli, ["params", "--sample-rate", "44100", "--rate", "1.5",
                                 "--input-length", "100000", "--format", "json"])
    assert result.exit_code == 0, result.output
    info = json.loads(result.output)
    assert info["window_size"] == 882
    assert info["search_range"] == 441
    assert info["hop_out"] == 441
    assert info["hop_in"] == 661
    assert info["bypass"] is False
    assert info["max_output_length"] == 66666 + 882

def test_params_cmd_bypass(runner: CliRunner):
    result = runner.invoke(cli, ["params", "--sample-rate", "44100", "--rate", "1.5",
                                 "--input-length", "1000", "--format", "json"])
    info = json.loads(result.output)
    assert info["bypass"] is True
    assert info["max_output_length"] == 1000

def test_params_cmd_degenerate(runner: CliRunner):
    result = runner.invoke(cli, ["params", "--sample-rate", "40", "--rate", "1.0"])
    assert result.exit_code == 2
    assert "too low" in result.output

# --- onsets / pitch ---

@pytest.fixture
def mock_analysis_load(mocker):
    """Mocks load_audio used by the analysis commands."""
    sr = 22050
    dummy_audio = np.zeros(sr, dtype=np.float32)
    return mocker.patch("stretchkit.cli.analysis_cmd.load_audio", return_value=(dummy_audio, sr)), dummy_audio, sr

def test_onsets_cmd_table(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    mock_load, dummy_audio, sr = mock_analysis_load
    mock_analyze = mocker.patch("stretchkit.cli.analysis_cmd.analyze", return_value=np.array([0.25, 0.75]))
    input_file = tmp_path / "input.wav"
    input_file.touch()

    result = runner.invoke(cli, ["onsets", str(input_file)])

    assert result.exit_code == 0, result.output
    mock_load.assert_called_once_with(input_file.resolve(), sr=None, mono=True)
    mock_analyze.assert_called_once()
    call_args, call_kwargs = mock_analyze.call_args
    assert call_args[0] == 'onset'
    assert_equal(call_args[1], dummy_audio)
    assert call_args[2] == sr
    assert call_kwargs == {"min_interval": 0.05}
    assert "0.25" in result.output and "0.75" in result.output
    assert "2 onsets detected." in result.output

def test_onsets_cmd_json_and_options(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    mock_load, _, _ = mock_analysis_load
    mock_analyze = mocker.patch("stretchkit.cli.analysis_cmd.analyze", return_value=np.array([0.1]))
    input_file = tmp_path / "input.wav"
    input_file.touch()

    result = runner.invoke(cli, ["onsets", str(input_file), "--sr", "16000", "--min-interval", "0.2", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"onsets": [0.1]}
    assert mock_load.call_args.kwargs["sr"] == 16000
    assert mock_analyze.call_args.kwargs == {"min_interval": 0.2}

def test_onsets_cmd_missing_input(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(cli, ["onsets", str(tmp_path / "missing.wav")])
    assert result.exit_code == 2
    assert "does not exist" in result.output

def test_onsets_cmd_end_to_end(runner: CliRunner, tmp_path: Path):
    import librosa
    import soundfile as sf
    sr = 22050
    clicks = librosa.clicks(times=[0.3, 0.8, 1.3], sr=sr, length=int(sr * 1.8))
    sf.write(tmp_path / "clicks.wav", 0.5 * clicks, sr, subtype='FLOAT')

    result = runner.invoke(cli, ["onsets", str(tmp_path / "clicks.wav"), "--format", "json"])
    assert result.exit_code == 0, result.output
    onsets = json.loads(result.output)["onsets"]
    assert len(onsets) >= 3

def test_pitch_cmd_json(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    from stretchkit.core.analysis import PitchFrame
    frames = [PitchFrame(0.0, None, 0.01), PitchFrame(0.0232, 220.5, 0.93)]
    mock_analyze = mocker.patch("stretchkit.cli.analysis_cmd.analyze", return_value=frames)
    input_file = tmp_path / "input.wav"
    input_file.touch()

    result = runner.invoke(cli, ["pitch", str(input_file), "--fmin", "80", "--fmax", "1000", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert mock_analyze.call_args.args[0] == 'pitch'
    assert mock_analyze.call_args.kwargs == {"fmin": 80.0, "fmax": 1000.0}
    assert json.loads(result.output) == {"frames": [
        {"time": 0.0, "freq": None, "confidence": 0.01},
        {"time": 0.0232, "freq": 220.5, "confidence": 0.93},
    ]}

def test_pitch_cmd_table_voiced_only(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    from stretchkit.core.analysis import PitchFrame
    frames = [PitchFrame(0.0, None, 0.01), PitchFrame(0.0232, 220.5, 0.93)]
    mocker.patch("stretchkit.cli.analysis_cmd.analyze", return_value=frames)
    input_file = tmp_path / "input.wav"
    input_file.touch()

    result = runner.invoke(cli, ["pitch", str(input_file)])
    assert result.exit_code == 0, result.output
    assert "220.50" in result.output
    assert "0.0000" in result.output

    result = runner.invoke(cli, ["pitch", str(input_file), "--voiced-only"])
    assert result.exit_code == 0, result.output
    assert "220.50" in result.output
    assert "0.0000" not in result.output

def test_pitch_cmd_value_error(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    mocker.patch("stretchkit.cli.analysis_cmd.analyze", side_effect=ValueError("fmin (500.0 Hz) must be below fmax (400.0 Hz)."))
    input_file = tmp_path / "input.wav"
    input_file.touch()
    result = runner.invoke(cli, ["pitch", str(input_file), "--fmin", "500", "--fmax", "400"])
    assert result.exit_code == 2
    assert "must be below fmax" in result.output

def test_pitch_cmd_unexpected_error(runner: CliRunner, mock_analysis_load, tmp_path: Path, mocker):
    mocker.patch("stretchkit.cli.analysis_cmd.analyze", side_effect=RuntimeError("boom"))
    input_file = tmp_path / "input.wav"
    input_file.touch()
    result = runner.invoke(cli, ["pitch", str(input_file)])
    assert result.exit_code == 1
