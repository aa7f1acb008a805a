"""Tests for boxdiff.config."""

from __future__ import annotations

import logging
import os
from dataclasses import FrozenInstanceError
from typing import TYPE_CHECKING

import pytest

from boxdiff.config import CONFIG_FILENAME, AnalysisConfig, ConfigError, load_config

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BOXDIFF_* variables from the outer environment out of these tests."""
    for name in list(os.environ):
        if name.startswith("BOXDIFF_"):
            monkeypatch.delenv(name)


class TestAnalysisConfig:
    """Default thresholds."""

    def test_defaults(self) -> None:
        config = AnalysisConfig()
        assert config.low_conflict_similarity == 0.8
        assert config.high_conflict_similarity == 0.5
        assert config.review_file_threshold == 10
        assert config.large_size_change == 10_000
        assert config.context_lines == 3
        assert config.max_content_bytes == 256 * 1024

    def test_frozen(self) -> None:
        config = AnalysisConfig()
        with pytest.raises(FrozenInstanceError):
            config.context_lines = 5  # type: ignore[misc]


class TestLoadConfig:
    """File and environment loading."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == AnalysisConfig()

    def test_analysis_section(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            "[analysis]\nreview_file_threshold = 25\nsafe_similarity = 0.85\n"
        )
        config = load_config(tmp_path)
        assert config.review_file_threshold == 25
        assert config.safe_similarity == 0.85
        assert config.context_lines == 3

    def test_int_coerced_to_float(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[analysis]\nsafe_similarity = 1\n")
        value = load_config(tmp_path).safe_similarity
        assert value == 1.0
        assert isinstance(value, float)

    def test_unknown_keys_warn(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[analysis]\nbogus = 1\n")
        with caplog.at_level(logging.WARNING, logger="boxdiff.config"):
            config = load_config(tmp_path)
        assert config == AnalysisConfig()
        assert "bogus" in caplog.text

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[analysis]\ncontext_lines = 5\n")
        monkeypatch.setenv("BOXDIFF_CONTEXT_LINES", "1")
        assert load_config(tmp_path).context_lines == 1

    def test_override_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("[analysis]\nlarge_size_change = 500\n")
        assert load_config(tmp_path, str(custom)).large_size_change == 500

    def test_missing_override(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path, str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[analysis\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(tmp_path)

    def test_analysis_not_a_table(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('analysis = "strict"\n')
        with pytest.raises(ConfigError, match="must be a table"):
            load_config(tmp_path)

    @pytest.mark.parametrize(
        "line",
        ['context_lines = "many"', "review_file_threshold = true", "safe_similarity = [1]"],
    )
    def test_invalid_values(self, tmp_path: Path, line: str) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(f"[analysis]\n{line}\n")
        with pytest.raises(ConfigError, match="Invalid value"):
            load_config(tmp_path)

    def test_invalid_env_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOXDIFF_REVIEW_FILE_THRESHOLD", "ten")
        with pytest.raises(ConfigError):
            load_config(tmp_path)
