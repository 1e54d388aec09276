"""Tests for flowunit scenario configuration."""

import os
import tempfile

import pytest

from flowunit.config import (
    ConfigLoadError,
    HarnessSchema,
    ObservabilitySchema,
    ScenarioFileSchema,
    ScenarioSchema,
    SinkSchema,
    load_yaml_config,
    load_yaml_string,
    substitute_env_vars,
)
from flowunit.core import Watermark


MINIMAL_YAML = """
version: "1.0"
scenarios:
  discard:
    processor: "flowunit.processors:noop_p"
    input: [1, 2, 3]
"""


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_simple_var(self, monkeypatch):
        """Test simple variable substitution."""
        monkeypatch.setenv("FLOWUNIT_TEST_VAR", "hello")
        assert substitute_env_vars("${FLOWUNIT_TEST_VAR}") == "hello"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("FLOWUNIT_MISSING", raising=False)
        assert substitute_env_vars("${FLOWUNIT_MISSING:-fallback}") == "fallback"

    def test_set_var_wins_over_default(self, monkeypatch):
        monkeypatch.setenv("FLOWUNIT_SET", "actual")
        assert substitute_env_vars("${FLOWUNIT_SET:-fallback}") == "actual"

    def test_missing_required_var_raises(self, monkeypatch):
        """Test that a missing variable without default raises KeyError."""
        monkeypatch.delenv("FLOWUNIT_REQUIRED", raising=False)
        with pytest.raises(KeyError, match="FLOWUNIT_REQUIRED"):
            substitute_env_vars("${FLOWUNIT_REQUIRED}")

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("FLOWUNIT_NESTED", "v")
        data = {"outer": {"inner": ["${FLOWUNIT_NESTED}", "static"]}}
        assert substitute_env_vars(data) == {"outer": {"inner": ["v", "static"]}}

    def test_several_vars_in_one_string(self, monkeypatch):
        monkeypatch.setenv("FLOWUNIT_A", "hello")
        monkeypatch.setenv("FLOWUNIT_B", "world")
        assert substitute_env_vars("${FLOWUNIT_A} ${FLOWUNIT_B}!") == "hello world!"

    def test_non_string_passthrough(self):
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(42) == 42
        assert substitute_env_vars(2.5) == 2.5
        assert substitute_env_vars(True) is True
        assert substitute_env_vars(None) is None

    def test_empty_default(self, monkeypatch):
        monkeypatch.delenv("FLOWUNIT_EMPTY_DEFAULT", raising=False)
        assert substitute_env_vars("${FLOWUNIT_EMPTY_DEFAULT:-}") == ""


class TestSchemaValidation:
    """Tests for Pydantic schema validation."""

    def test_file_sink_requires_path(self):
        with pytest.raises(ValueError, match="path"):
            SinkSchema(type="file")

    def test_console_sink_without_path(self):
        sink = SinkSchema(type="console")
        assert sink.path is None

    def test_observability_defaults_off(self):
        assert ObservabilitySchema().level == "off"

    def test_harness_defaults(self):
        """Test every harness check is on by default."""
        harness = HarnessSchema()
        assert harness.complete_call
        assert harness.logging
        assert harness.progress_assertion
        assert harness.snapshots
        assert harness.cooperative_timeout_ms == 1000.0
        assert harness.outbox_capacity is None

    def test_harness_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            HarnessSchema(cooperative_timeout_ms=0)

    def test_harness_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            HarnessSchema(outbox_capacity=0)

    def test_processor_ref_must_not_be_empty(self):
        with pytest.raises(ValueError, match="must not be empty"):
            ScenarioSchema(processor="  ")

    def test_processor_ref_malformed(self):
        with pytest.raises(ValueError, match="Invalid processor reference"):
            ScenarioSchema(processor="flowunit.processors:")

    def test_plugin_name_accepted(self):
        assert ScenarioSchema(processor="noop").processor == "noop"

    def test_null_items_rejected(self):
        with pytest.raises(ValueError, match="null"):
            ScenarioSchema(processor="noop", input=[1, None])

    def test_watermark_items(self):
        """Test {watermark: N} mappings become watermarks."""
        scenario = ScenarioSchema(
            processor="noop",
            input=[1, {"watermark": 5}, {"other": 1}],
            expected_output=[{"watermark": "7"}],
        )
        assert scenario.input_items() == [1, Watermark(5), {"other": 1}]
        assert scenario.expected_items() == [Watermark(7)]

    def test_version_validation(self):
        with pytest.raises(ValueError, match="Unsupported config version"):
            ScenarioFileSchema(
                version="2.0",
                scenarios={"s": ScenarioSchema(processor="noop")},
            )

    def test_requires_scenarios(self):
        """Test that at least one scenario is required."""
        with pytest.raises(ValueError):
            ScenarioFileSchema(version="1.0", scenarios={})


class TestLoadYamlConfig:
    """Tests for YAML configuration loading."""

    def test_load_minimal(self):
        config = load_yaml_string(MINIMAL_YAML)
        assert config.version == "1.0"
        scenario = config.scenarios["discard"]
        assert scenario.processor == "flowunit.processors:noop_p"
        assert scenario.input == [1, 2, 3]
        assert scenario.expected_output == []
        assert not scenario.any_order

    def test_env_var_in_harness(self, monkeypatch):
        """Test numeric settings may come from the environment."""
        monkeypatch.setenv("FLOWUNIT_TIMEOUT_MS", "250")
        config = load_yaml_string("""
version: "1.0"
scenarios:
  s:
    processor: noop
    harness:
      cooperative_timeout_ms: "${FLOWUNIT_TIMEOUT_MS}"
""")
        assert config.scenarios["s"].harness.cooperative_timeout_ms == 250.0

    def test_env_default_in_sink_path(self, monkeypatch):
        monkeypatch.delenv("FLOWUNIT_LOG_DIR", raising=False)
        config = load_yaml_string("""
version: "1.0"
scenarios:
  s:
    processor: noop
observability:
  level: normal
  sinks:
    - type: file
      path: "${FLOWUNIT_LOG_DIR:-./logs}/trace.jsonl"
""")
        assert config.observability.sinks[0].path == "./logs/trace.jsonl"

    def test_missing_env_var_wrapped(self, monkeypatch):
        monkeypatch.delenv("FLOWUNIT_UNSET", raising=False)
        with pytest.raises(ConfigLoadError, match="Environment variable error"):
            load_yaml_string("""
version: "1.0"
scenarios:
  s:
    processor: "${FLOWUNIT_UNSET}"
""")

    def test_load_from_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write(MINIMAL_YAML)
        try:
            config = load_yaml_config(f.name)
            assert "discard" in config.scenarios
        finally:
            os.unlink(f.name)

    def test_load_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_yaml_config("/nonexistent/path/scenarios.yaml")

    def test_load_invalid_yaml_raises(self):
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_yaml_string("{ invalid yaml [")

    def test_load_empty_config_raises(self):
        with pytest.raises(ConfigLoadError, match="Empty"):
            load_yaml_string("")

    def test_load_non_dict_raises(self):
        with pytest.raises(ConfigLoadError, match="dictionary"):
            load_yaml_string("- item1\n- item2")

    def test_validation_error_wrapped(self):
        """Test that validation errors are wrapped in ConfigLoadError."""
        with pytest.raises(ConfigLoadError, match="validation failed"):
            load_yaml_string('version: "1.0"\nscenarios: {}\n')


class TestFullConfigParsing:
    """Integration test for a complete scenario file."""

    def test_full_file(self):
        config = load_yaml_string("""
version: "1.0"

scenarios:
  lagged:
    processor: "flowunit.processors:insert_watermarks_p"
    args:
      lag: 2
    input: [5]
    expected_output: [{watermark: 3}, 5]

  watermarks:
    processor: insert_watermarks
    input: [5, {watermark: 9}, 10]
    expected_output: [{watermark: 5}, 5, {watermark: 9}, {watermark: 10}, 10]
    any_order: true
    harness:
      complete_call: false
      snapshots: false
      progress_assertion: false
      logging: false
      cooperative_timeout_ms: 50
      outbox_capacity: 4

observability:
  level: verbose
  sinks:
    - type: file
      path: /tmp/flowunit-trace.jsonl
    - type: console
""")
        assert list(config.scenarios) == ["lagged", "watermarks"]
        assert config.scenarios["lagged"].args == {"lag": 2}

        wm = config.scenarios["watermarks"]
        assert wm.any_order
        assert wm.input_items() == [5, Watermark(9), 10]
        assert wm.expected_items()[0] == Watermark(5)
        assert not wm.harness.complete_call
        assert not wm.harness.snapshots
        assert wm.harness.outbox_capacity == 4

        obs = config.observability
        assert obs.level == "verbose"
        assert [s.type for s in obs.sinks] == ["file", "console"]
