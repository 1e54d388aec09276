"""Validate command for flowunit CLI."""

import sys
from pathlib import Path

from flowunit.config import ConfigLoadError, load_yaml_config
from flowunit.plugin.discovery import resolve_processor


def cmd_validate(config_path: str, check_plugins: bool = False) -> int:
    """Validate a scenario file.

    Args:
        config_path: Path to the YAML scenario file.
        check_plugins: Whether to resolve every referenced processor.

    Returns:
        Exit code (0 for success, 1 for validation errors).
    """
    path = Path(config_path)

    if not path.exists():
        print(f"Error: Configuration file not found: {path}", file=sys.stderr)
        return 1

    print(f"Validating: {path}")

    try:
        config = load_yaml_config(path)
    except ConfigLoadError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return 1

    print(f"  Version: {config.version}")
    print(f"  Scenarios: {len(config.scenarios)}")

    for name, scenario in config.scenarios.items():
        harness = scenario.harness
        print(f"\n  Scenario '{name}':")
        print(f"    Processor: {scenario.processor}")
        if scenario.args:
            print(f"    Args: {scenario.args}")
        print(f"    Input: {len(scenario.input)} items")
        order = "any order" if scenario.any_order else "in order"
        print(f"    Expected output: {len(scenario.expected_output)} items ({order})")
        disabled = [
            label
            for label, enabled in (
                ("complete call", harness.complete_call),
                ("logging", harness.logging),
                ("progress assertion", harness.progress_assertion),
                ("snapshots", harness.snapshots),
            )
            if not enabled
        ]
        if disabled:
            print(f"    Disabled: {', '.join(disabled)}")
        print(f"    Cooperative timeout: {harness.cooperative_timeout_ms:g} ms")

    print(f"\n  Observability: {config.observability.level}")
    for sink in config.observability.sinks:
        sink_info = sink.type
        if sink.path:
            sink_info += f" -> {sink.path}"
        print(f"    - {sink_info}")

    if check_plugins:
        print("\nChecking processor references...")
        errors = []
        for name, scenario in config.scenarios.items():
            try:
                resolve_processor(scenario.processor)
            except (KeyError, ImportError, TypeError) as e:
                errors.append(f"{e} (scenario: {name})")

        if errors:
            print("\nPlugin errors:", file=sys.stderr)
            for err in errors:
                print(f"  - {err}", file=sys.stderr)
            return 1
        else:
            print("  All processors available")

    print("\nConfiguration is valid.")
    return 0
