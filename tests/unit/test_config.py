"""Tests for config.py — YAML configuration loading."""

import os

import pytest

from fsl_verbs.config import (
    Config,
    ConfigurationError,
    config_from_dict,
    load_config,
    load_yaml,
    substitute_env,
)


class TestLoadConfig:
    def test_defaults_without_file(self):
        config = load_config()
        assert config == Config()
        assert config.viewer == "fsleyes"
        assert config.bet_frac == 0.5
        assert config.keep_intermediates is False

    def test_explicit_file(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("viewer: fslview\nbet_frac: 0.3\nkeep_intermediates: true\n")

        config = load_config(str(f))

        assert config.viewer == "fslview"
        assert config.bet_frac == 0.3
        assert config.keep_intermediates is True
        assert config.fdr_q == 0.05

    def test_env_var_file(self, tmp_path, monkeypatch):
        f = tmp_path / "config.yaml"
        f.write_text("fdr_q: 0.01\n")
        monkeypatch.setenv("FSL_VERBS_CONFIG", str(f))

        assert load_config().fdr_q == 0.01

    def test_user_default_file(self, tmp_path, monkeypatch):
        config_dir = tmp_path / ".config" / "fsl-verbs"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text("norm_target: 1000\n")
        monkeypatch.setenv("HOME", str(tmp_path))

        assert load_config().norm_target == 1000.0

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("")
        assert load_config(str(f)) == Config()


class TestLoadYaml:
    def test_invalid_yaml(self, tmp_path):
        f = tmp_path / "bad.yaml"
        f.write_text("viewer: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml(f)

    def test_non_mapping(self, tmp_path):
        f = tmp_path / "list.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml(f)


class TestConfigFromDict:
    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration keys: colour"):
            config_from_dict({"colour": "blue"})

    def test_numeric_coercion(self):
        assert config_from_dict({"susan_bt_factor": "0.5"}).susan_bt_factor == 0.5

    def test_bad_number(self):
        with pytest.raises(ConfigurationError, match="bet_frac"):
            config_from_dict({"bet_frac": "high"})

    def test_bad_bool(self):
        with pytest.raises(ConfigurationError, match="ica_report"):
            config_from_dict({"ica_report": "yes please"})

    def test_env_substitution(self, monkeypatch):
        monkeypatch.setenv("MY_FSL", "/opt/fsl")
        assert config_from_dict({"fsldir": "${MY_FSL}"}).fsldir == "/opt/fsl"


class TestSubstituteEnv:
    def test_missing_variable(self, monkeypatch):
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        with pytest.raises(ConfigurationError, match="NOT_SET_ANYWHERE"):
            substitute_env("${NOT_SET_ANYWHERE}/bin")

    def test_non_string_passthrough(self):
        assert substitute_env(0.5) == 0.5


class TestApplyEnvironment:
    def test_exports_fsldir(self, monkeypatch):
        monkeypatch.setenv("FSLDIR", "/usr/local/fsl")
        Config(fsldir="/opt/fsl").apply_environment()
        assert os.environ["FSLDIR"] == "/opt/fsl"

    def test_noop_without_fsldir(self, monkeypatch):
        monkeypatch.setenv("FSLDIR", "/usr/local/fsl")
        Config().apply_environment()
        assert os.environ["FSLDIR"] == "/usr/local/fsl"
