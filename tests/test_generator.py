import json

import pytest

import pinseq
from pinseq import ConfigurationError, KeyedPins, PinConfig, ResumablePins, build
from pinseq.generator import main

KEY = "2b7e151628aed2a6abf7158809cf4f3c"


def test_generate_returns_count_pins():
    pins = pinseq.generate(count=7)
    assert len(pins) == 7
    assert all(len(p) == 4 and p.isdigit() for p in pins)
    assert len(set(pins)) == 7


def test_generate_with_fixed_key_is_repeatable():
    assert pinseq.generate(count=5, key=KEY) == pinseq.generate(count=5, key=KEY)


def test_cli_prints_pins(capsys):
    assert main(["--count", "3", "--key", KEY, "-q"]) == 0
    first = capsys.readouterr().out.split()
    assert main(["--count", "3", "--key", KEY, "-q"]) == 0
    assert capsys.readouterr().out.split() == first
    assert len(first) == 3


def test_cli_resumes_from_state_dir(tmp_path, capsys):
    args = ["--count", "4", "--state-dir", str(tmp_path), "--length", "3", "-q"]
    assert main(args) == 0
    first = capsys.readouterr().out.split()
    assert main(args) == 0
    second = capsys.readouterr().out.split()
    assert len(first) == len(second) == 4
    assert not set(first) & set(second)


def test_cli_reads_config_file(tmp_path, capsys):
    cfg = tmp_path / "pins.json"
    PinConfig(length=6, character_set="abcdef", count=2, cipher="shuffle").to_json(cfg)
    assert main(["--config", str(cfg), "--count", "3", "-q"]) == 0
    out = capsys.readouterr().out.split()
    assert len(out) == 3
    assert all(len(p) == 6 and set(p) <= set("abcdef") for p in out)


def test_cli_reports_configuration_errors(caplog):
    assert main(["--charset", "112", "-q"]) == 2
    assert main(["--key", "abcd", "-q"]) == 2
    assert "repeated" in caplog.text or "key" in caplog.text


def test_config_rejects_unknown_settings(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"length": 4, "colour": "red"}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        PinConfig.from_json(path)


def test_config_validation():
    with pytest.raises(ConfigurationError):
        PinConfig(length=0).validate()
    with pytest.raises(ConfigurationError):
        PinConfig(cipher="des").validate()
    with pytest.raises(ConfigurationError):
        PinConfig(key=KEY, state_dir="/tmp/x").validate()


def test_build_picks_sequence_type(tmp_path):
    assert isinstance(build(PinConfig()), KeyedPins)
    assert isinstance(build(PinConfig(state_dir=str(tmp_path))), ResumablePins)


def test_cli_reports_unusable_config_files(tmp_path, caplog):
    broken = tmp_path / "broken.json"
    broken.write_text("{length: 4", encoding="utf-8")
    wrong_type = tmp_path / "wrong.json"
    wrong_type.write_text(json.dumps({"length": "4"}), encoding="utf-8")
    assert main(["--config", str(broken), "-q"]) == 2
    assert main(["--config", str(tmp_path / "missing.json"), "-q"]) == 2
    assert main(["--config", str(wrong_type), "-q"]) == 2
    assert "length must be int" in caplog.text


def test_config_rejects_wrong_types():
    with pytest.raises(ConfigurationError):
        PinConfig(count=True).validate()
    with pytest.raises(ConfigurationError):
        PinConfig(character_set=123).validate()


def test_cli_verbose_and_quiet_conflict():
    with pytest.raises(SystemExit):
        main(["-v", "-q"])
