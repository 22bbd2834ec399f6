"""Tests for settings, style loading and error reporting."""
import json
import logging

import pytest

from citemarker.config import (
    Settings,
    apply_runtime_overrides,
    clear_settings_cache,
    get_default_style,
    get_settings,
    load_config,
)
from citemarker.core.citation import StyleConfig
from citemarker.utils.exceptions import (
    ConfigError,
    InvalidCitationEntryError,
    MarkerBuildError,
    NonUniqueCitationMarkerError,
    StyleError,
)
from citemarker.utils.logging import JSONFormatter, LogContext, get_logger


class TestSettings:
    """Tests for the settings layer."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.app_name == "citemarker"
        assert settings.markers.non_unique_policy == "throws"
        assert settings.markers.default_style_path is None
        assert settings.markers.min_grouping_count_override is None
        assert settings.logging.level == "INFO"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CITEMARKER_MARKERS_MIN_GROUPING_COUNT_OVERRIDE", "2")
        clear_settings_cache()
        assert get_settings().markers.min_grouping_count_override == 2

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "environment: test\nmarkers:\n  non_unique_policy: forgiven\n",
            encoding="utf-8",
        )
        settings = Settings.from_yaml(path)
        assert settings.environment == "test"
        assert settings.markers.non_unique_policy == "forgiven"

    def test_missing_yaml_gives_defaults(self, tmp_path):
        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings.markers.non_unique_policy == "throws"

    def test_config_path_from_environment(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")
        monkeypatch.setenv("CITEMARKER_CONFIG_PATH", str(path))
        assert load_config().logging.level == "DEBUG"

    def test_runtime_override(self):
        apply_runtime_overrides("markers", {"non_unique_policy": "forgiven"})
        assert get_settings().markers.non_unique_policy == "forgiven"
        clear_settings_cache()
        assert get_settings().markers.non_unique_policy == "throws"

    def test_invalid_runtime_override_rejected(self):
        apply_runtime_overrides("markers", {"non_unique_policy": "sometimes"})
        with pytest.raises(ConfigError) as exc_info:
            get_settings()
        assert exc_info.value.code == "CONFIG_ERROR"
        assert "non_unique_policy" in exc_info.value.details

    def test_invalid_environment_value_rejected(self, monkeypatch):
        monkeypatch.setenv("CITEMARKER_MARKERS_NON_UNIQUE_POLICY", "sometimes")
        with pytest.raises(ConfigError):
            load_config()

    def test_invalid_yaml_value_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("environment: staging\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_config(str(path))
        assert str(path) in exc_info.value.details


class TestStyleConfig:
    """Tests for style properties."""

    def test_from_style_file_property_names(self):
        style = StyleConfig.from_properties(
            {
                "Name": "Numbered",
                "IsNumberEntries": "true",
                "MinimumGroupingCount": "2",
                "BracketBefore": "(",
                "BracketAfter": ")",
                "UnknownProperty": "ignored",
            }
        )
        assert style.name == "Numbered"
        assert style.number_entries is True
        assert style.min_grouping_count == 2
        assert style.bracket_before == "("

    def test_invalid_value(self):
        with pytest.raises(StyleError) as exc_info:
            StyleConfig.from_properties({"MaxAuthors": "-5"})
        assert exc_info.value.code == "STYLE_ERROR"

    def test_frozen(self):
        style = StyleConfig()
        with pytest.raises(Exception):
            style.max_authors = 5

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "style.yaml"
        path.write_text("MaxAuthors: 2\nEtAlString: ' u. a.'\n", encoding="utf-8")
        style = StyleConfig.from_yaml(path)
        assert style.max_authors == 2
        assert style.et_al_string == " u. a."

    def test_yaml_missing(self, tmp_path):
        with pytest.raises(StyleError):
            StyleConfig.from_yaml(tmp_path / "absent.yaml")

    def test_yaml_not_a_mapping(self, tmp_path):
        path = tmp_path / "style.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(StyleError):
            StyleConfig.from_yaml(path)

    def test_field_fallbacks(self):
        style = StyleConfig(author_field="Author / Editor")
        assert style.author_fields == ("author", "editor")
        assert style.year_fields == ("year",)

    def test_default_style_from_settings(self, monkeypatch, tmp_path):
        path = tmp_path / "style.yaml"
        path.write_text("Name: Custom\nIsNumberEntries: true\n", encoding="utf-8")
        monkeypatch.setenv("CITEMARKER_MARKERS_DEFAULT_STYLE_PATH", str(path))
        clear_settings_cache()
        style = get_default_style()
        assert style.name == "Custom"
        assert style.number_entries

    def test_builtin_default_style(self):
        assert get_default_style() == StyleConfig()


class TestExceptions:
    def test_to_dict(self):
        error = MarkerBuildError("No entries to cite", details="empty list")
        assert error.to_dict() == {
            "error": {
                "code": "MARKER_BUILD_ERROR",
                "message": "No entries to cite",
                "recoverable": False,
                "details": "empty list",
            }
        }

    def test_to_dict_safe_omits_details(self):
        error = InvalidCitationEntryError("a1", "bad letter")
        assert "details" not in error.to_dict(safe=True)["error"]

    def test_non_unique_is_marker_error(self):
        error = NonUniqueCitationMarkerError("a1", "a2", "Beta, 2000")
        assert isinstance(error, MarkerBuildError)
        assert error.code == "NON_UNIQUE_CITATION_MARKER"
        assert "a1" in error.details


class TestLogging:
    """Tests for build context on log records."""

    @pytest.fixture
    def captured(self):
        logger = get_logger("citemarker.test")
        records = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = _Collect()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        yield logger, records
        logger.removeHandler(handler)

    def test_json_formatter_includes_context(self, captured):
        logger, records = captured
        with LogContext(logger, style_name="Default", marker_kind="numeric") as log:
            log.info("building")

        payload = json.loads(JSONFormatter().format(records[0]))
        assert payload["message"] == "building"
        assert payload["style_name"] == "Default"
        assert payload["marker_kind"] == "numeric"
        assert "citation_keys" not in payload

    def test_overlapping_contexts_stay_separate(self, captured):
        logger, records = captured
        first = LogContext(logger, citation_keys="A")
        second = LogContext(logger, citation_keys="B")

        first.__enter__()
        second.__enter__()
        first.info("from first")
        second.info("from second")
        first.__exit__(None, None, None)
        second.__exit__(None, None, None)
        logger.info("after both")

        assert [getattr(r, "citation_keys", None) for r in records] == ["A", "B", None]
        fresh = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", (), None)
        assert getattr(fresh, "citation_keys", None) is None

    def test_explicit_extra_wins(self, captured):
        logger, records = captured
        with LogContext(logger, marker_kind="numeric") as log:
            log.info("bibliography", extra={"marker_kind": "bibliography"})
        assert records[0].marker_kind == "bibliography"
