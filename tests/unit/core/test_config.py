"""Unit tests for configuration loading and validation."""

from pathlib import Path

import pytest

from floorscan.core.config import (
    ConcurrencyMode,
    ConcurrencySettings,
    ConfigurationError,
    EnvironmentVariableError,
    MainConfig,
    ScanSettings,
    build_config,
    load_main_config,
    merge_overrides,
    resolve_env_var,
    resolve_env_vars,
)
from floorscan.core.depth_filter import DepthMode, ItemType
from floorscan.core.units import DisplayUnit, UnitFamily


class TestScanSettings:
    """Test scan settings validation."""

    def test_defaults(self) -> None:
        settings = ScanSettings()

        assert settings.floor == 1
        assert settings.item_type is ItemType.DIRECTORY
        assert settings.depth_mode is DepthMode.AT_MOST
        assert settings.unit_selection().is_auto

    def test_floor_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="floor"):
            _ = ScanSettings(floor=0)

    def test_negative_min_size_rejected(self) -> None:
        with pytest.raises(ValueError, match="min_size_mb"):
            _ = ScanSettings(min_size_mb=-1)

    def test_unit_resolved_with_family(self) -> None:
        selection = ScanSettings(unit="GiB", unit_family=UnitFamily.BINARY).unit_selection()

        assert selection.unit is DisplayUnit.GIB

    def test_unit_family_conflict_rejected(self) -> None:
        with pytest.raises(ValueError, match="does not belong"):
            _ = ScanSettings(unit="MB", unit_family=UnitFamily.BINARY)

    def test_unknown_unit_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown unit"):
            _ = ScanSettings(unit="parsecs")


class TestConcurrencySettings:
    """Test concurrency settings validation and derived values."""

    def test_max_below_min_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_threads"):
            _ = ConcurrencySettings(min_threads=4, max_threads=2)

    def test_low_above_high_rejected(self) -> None:
        with pytest.raises(ValueError, match="queue_low"):
            _ = ConcurrencySettings(queue_high=1.0, queue_low=3.0)

    @pytest.mark.parametrize(
        ("settings", "expected_batch", "expected_pool"),
        [
            (ConcurrencySettings(mode=ConcurrencyMode.ADAPTIVE, max_threads=6), 12, 6),
            (ConcurrencySettings(mode=ConcurrencyMode.FIXED, threads=3), 3, 3),
            (ConcurrencySettings(mode=ConcurrencyMode.SEQUENTIAL, threads=5), 5, 1),
            (ConcurrencySettings(mode=ConcurrencyMode.ADAPTIVE, batch_size=7), 7, 8),
        ],
    )
    def test_batch_and_pool_sizes(
        self,
        settings: ConcurrencySettings,
        expected_batch: int,
        expected_pool: int,
    ) -> None:
        assert settings.effective_batch_size() == expected_batch
        assert settings.pool_size() == expected_pool


class TestEnvironmentResolution:
    """Test ${VAR} resolution in configuration values."""

    def test_resolves_nested_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXPORT_DIR", "/srv/out")

        resolved = resolve_env_vars({"output": {"path": "${EXPORT_DIR}/sizes.csv"}, "list": ["${EXPORT_DIR}", 3]})

        assert resolved == {"output": {"path": "/srv/out/sizes.csv"}, "list": ["/srv/out", 3]}

    def test_missing_variable_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FLOORSCAN_UNSET", raising=False)

        with pytest.raises(EnvironmentVariableError, match="FLOORSCAN_UNSET"):
            _ = resolve_env_var("${FLOORSCAN_UNSET}")


class TestMergeOverrides:
    """Test layering of command-line values over file values."""

    def test_nested_merge_ignores_none(self) -> None:
        base: dict[str, object] = {"scan": {"floor": 2, "unit": "GB"}, "output": {"path": "a.csv"}}
        overrides: dict[str, object] = {"scan": {"floor": None, "unit": "MB"}, "output": None}

        assert merge_overrides(base, overrides) == {"scan": {"floor": 2, "unit": "MB"}, "output": {"path": "a.csv"}}


class TestLoadMainConfig:
    """Test YAML configuration loading."""

    def test_loads_yaml_with_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_PATH", str(tmp_path / "report.json"))
        config_file = tmp_path / "floorscan.yaml"
        _ = config_file.write_text(
            "scan:\n"
            "  floor: 3\n"
            "  depth_mode: exact\n"
            "  unit: auto-binary\n"
            "concurrency:\n"
            "  mode: fixed\n"
            "  threads: 6\n"
            "output:\n"
            "  path: ${REPORT_PATH}\n"
        )

        config = load_main_config(config_file, overrides={"scan": {"floor": 2}})

        assert config.scan.floor == 2
        assert config.scan.depth_mode is DepthMode.EXACT
        assert config.concurrency.mode is ConcurrencyMode.FIXED
        assert config.concurrency.threads == 6
        assert config.output.path == tmp_path / "report.json"

    def test_no_file_uses_defaults(self) -> None:
        assert load_main_config(None) == MainConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        _ = config_file.write_text("")

        assert load_main_config(config_file) == MainConfig()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            _ = load_main_config(tmp_path / "absent.yaml")

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        _ = config_file.write_text("scan: [unclosed\n")

        with pytest.raises(ConfigurationError, match="parse YAML"):
            _ = load_main_config(config_file)

    def test_non_mapping_root_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        _ = config_file.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError, match="Expected YAML mapping"):
            _ = load_main_config(config_file)

    def test_validation_errors_name_the_field(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _ = build_config({"concurrency": {"min_threads": 0}})

        assert "concurrency → min_threads" in str(exc_info.value)

    def test_log_level_case_insensitive(self) -> None:
        assert build_config({"application": {"log_level": "debug"}}).application.log_level == "DEBUG"
