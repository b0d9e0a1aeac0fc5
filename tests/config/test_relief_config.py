"""
Tests for relief_config: YAML loading, validation, and the kernel bridges.
"""

import pytest
import yaml

from relief_config import DEFAULT_CONFIG_PATH, get_active_config
from relief_config.bridges import build_orchestrator, init_database
from relief_config.loader import compute_checksum, load_yaml_file, parse_config
from relief_config.schema import ReliefConfig
from relief_kernel.db.engine import get_engine, get_session, reset_engine
from relief_kernel.db.triggers import triggers_installed


@pytest.fixture
def write_config(tmp_path):
    def _write(body: str, name: str = "relief.yaml"):
        path = tmp_path / name
        path.write_text(body)
        return path

    return _write


class TestDefaults:
    def test_packaged_defaults_load(self):
        config = get_active_config()
        assert config.database_url == "sqlite:///relief.db"
        assert config.default_low_stock_threshold == 10
        assert config.report_top_n == 10
        assert config.log_level == "INFO"
        assert config.checksum

    def test_defaults_file_exists(self):
        assert DEFAULT_CONFIG_PATH.exists()

    def test_load_logged(self, captured_logs):
        get_active_config()
        [record] = [r for r in captured_logs() if r["message"] == "relief_config_loaded"]
        assert record["logger"] == "relief_kernel.config"
        assert record["config_path"] == str(DEFAULT_CONFIG_PATH)


class TestParsing:
    def test_custom_file(self, write_config):
        path = write_config(
            "relief:\n"
            "  database_url: sqlite:///:memory:\n"
            "  default_low_stock_threshold: 25\n"
            "  log_level: debug\n"
        )
        config = get_active_config(path)
        assert config.database_url == "sqlite:///:memory:"
        assert config.default_low_stock_threshold == 25
        assert config.log_level == "DEBUG"
        assert config.report_top_n == 10

    def test_top_level_without_section(self):
        assert parse_config({"report_top_n": 5}).report_top_n == 5

    def test_empty_file_gives_defaults(self, write_config):
        assert get_active_config(write_config("")) == ReliefConfig(checksum=compute_checksum({}))

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys: colour"):
            parse_config({"relief": {"colour": "red"}})

    @pytest.mark.parametrize("value", ["ten", True, 2.5])
    def test_int_keys_typed(self, value):
        with pytest.raises(ValueError, match="must be an integer"):
            parse_config({"relief": {"report_top_n": value}})

    def test_bool_key_typed(self):
        with pytest.raises(ValueError, match="true or false"):
            parse_config({"relief": {"echo_sql": "yes"}})

    def test_range_checked(self):
        with pytest.raises(ValueError, match="report_top_n must be > 0"):
            parse_config({"relief": {"report_top_n": 0}})

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            parse_config({"relief": {"log_level": "chatty"}})

    def test_non_mapping_file(self, write_config):
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(write_config("- a\n- b\n"))

    def test_malformed_yaml(self, write_config):
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(write_config("relief: [unclosed\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_checksum_stable_and_sensitive(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_config_is_frozen(self):
        config = ReliefConfig()
        with pytest.raises(AttributeError):
            config.report_top_n = 3


class TestBridges:
    @pytest.fixture
    def memory_config(self):
        yield ReliefConfig(database_url="sqlite:///:memory:", default_low_stock_threshold=25, report_top_n=3)
        reset_engine()

    def test_init_database_creates_schema(self, memory_config):
        init_database(memory_config)
        assert triggers_installed(get_engine())

    def test_orchestrator_uses_config_values(self, memory_config):
        init_database(memory_config)
        session = get_session()
        try:
            relief = build_orchestrator(session, memory_config)
            item = relief.inventory.create_item("Rice", quantity=20)
            assert item.low_stock_threshold == 25
            assert relief.reports.top_n == 3
        finally:
            session.close()
