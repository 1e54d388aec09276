"""Configuration system for flowunit.

Provides YAML-based declarative verification scenarios with:
- Pydantic schema validation
- Environment variable substitution (${VAR} and ${VAR:-default})

Example YAML config:
    version: "1.0"
    scenarios:
      discard:
        processor: "flowunit.processors:noop_p"
        input: [1, 2, 3]
        expected_output: []
        harness:
          cooperative_timeout_ms: "${FLOWUNIT_TIMEOUT_MS:-1000}"
    observability:
      level: normal
      sinks:
        - type: file
          path: "${LOG_DIR:-./logs}/trace.jsonl"

Example usage:
    >>> from flowunit.config import load_yaml_config
    >>> config = load_yaml_config("scenarios.yaml")
    >>> for name, scenario in config.scenarios.items():
    ...     print(f"Scenario: {name}")
"""

from flowunit.config.schema import (
    HarnessSchema,
    ObservabilitySchema,
    ScenarioFileSchema,
    ScenarioSchema,
    SinkSchema,
)
from flowunit.config.loader import (
    ConfigLoadError,
    load_yaml_config,
    load_yaml_string,
    substitute_env_vars,
)

__all__ = [
    # Schema models
    "ScenarioFileSchema",
    "ScenarioSchema",
    "HarnessSchema",
    "ObservabilitySchema",
    "SinkSchema",
    # Loader
    "load_yaml_config",
    "load_yaml_string",
    "substitute_env_vars",
    "ConfigLoadError",
]
