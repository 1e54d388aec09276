"""Verify command for flowunit CLI."""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from flowunit.config import ConfigLoadError, load_yaml_config
from flowunit.config.schema import ObservabilitySchema, ScenarioSchema
from flowunit.core.processor import Processor
from flowunit.errors import VerificationError
from flowunit.observability import (
    ConsoleSink,
    FileSink,
    MemorySink,
    NullSink,
    ObservabilityHub,
    Sink,
    TraceLevel,
)
from flowunit.plugin.discovery import resolve_processor
from flowunit.testing import ProcessorVerifier, same_items_any_order

logger = logging.getLogger(__name__)

_LEVELS = {
    "off": TraceLevel.OFF,
    "minimal": TraceLevel.MINIMAL,
    "normal": TraceLevel.NORMAL,
    "verbose": TraceLevel.VERBOSE,
}


def cmd_verify(config_path: str, scenario_name: Optional[str] = None) -> int:
    """Verify processors against the scenarios in a file.

    Args:
        config_path: Path to the YAML scenario file.
        scenario_name: Specific scenario to run (None for all).

    Returns:
        Exit code (0 when every scenario passed, 1 otherwise).
    """
    path = Path(config_path)

    if not path.exists():
        print(f"Error: Configuration file not found: {path}", file=sys.stderr)
        return 1

    try:
        config = load_yaml_config(path)
    except ConfigLoadError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if scenario_name:
        if scenario_name not in config.scenarios:
            print(
                f"Error: Scenario '{scenario_name}' not found. "
                f"Available: {list(config.scenarios.keys())}",
                file=sys.stderr,
            )
            return 1
        scenarios = {scenario_name: config.scenarios[scenario_name]}
    else:
        scenarios = config.scenarios

    hub = ObservabilityHub.get_instance()
    hub.configure(
        level=_LEVELS[config.observability.level],
        sinks=_build_sinks(config.observability),
    )

    failed: List[str] = []
    try:
        for name, scenario in scenarios.items():
            if not _run_scenario(name, scenario):
                failed.append(name)
    finally:
        hub.shutdown()

    print()
    print(f"{len(scenarios) - len(failed)} passed, {len(failed)} failed")
    return 1 if failed else 0


def _build_sinks(observability: ObservabilitySchema) -> List[Sink]:
    sinks: List[Sink] = []
    for sink_config in observability.sinks:
        if sink_config.type == "file" and sink_config.path:
            sinks.append(FileSink(sink_config.path, **sink_config.options))
        elif sink_config.type == "console":
            sinks.append(ConsoleSink(**sink_config.options))
        elif sink_config.type == "memory":
            sinks.append(MemorySink(**sink_config.options))
        else:
            sinks.append(NullSink())
    return sinks


def _make_factory(scenario: ScenarioSchema) -> Callable[[], Processor]:
    target = resolve_processor(scenario.processor)
    args: Dict = dict(scenario.args)

    def factory() -> Processor:
        processor = target(**args)
        if not isinstance(processor, Processor):
            raise TypeError(
                f"'{scenario.processor}' returned {type(processor).__name__}, "
                f"not a Processor"
            )
        return processor

    return factory


def _build_verifier(scenario: ScenarioSchema) -> ProcessorVerifier:
    harness = scenario.harness
    verifier = (
        ProcessorVerifier(_make_factory(scenario))
        .input(scenario.input_items())
        .expect_output(scenario.expected_items())
        .cooperative_timeout(harness.cooperative_timeout_ms)
        .outbox_capacity(harness.outbox_capacity)
    )
    if scenario.any_order:
        verifier.output_checker(same_items_any_order)
    if not harness.complete_call:
        verifier.disable_complete_call()
    if not harness.logging:
        verifier.disable_logging()
    if not harness.progress_assertion:
        verifier.disable_progress_assertion()
    if not harness.snapshots:
        verifier.disable_snapshots()
    return verifier


def _run_scenario(name: str, scenario: ScenarioSchema) -> bool:
    print(f"Scenario: {name} ({scenario.processor})")
    try:
        verifier = _build_verifier(scenario)
    except (KeyError, ImportError, TypeError) as e:
        print(f"  ERROR  cannot load processor: {e}", file=sys.stderr)
        return False

    try:
        verifier.verify()
    except VerificationError as e:
        print(f"  FAIL   {e}", file=sys.stderr)
        return False
    except Exception as e:
        logger.debug(f"Scenario '{name}' raised", exc_info=True)
        print(f"  ERROR  {type(e).__name__}: {e}", file=sys.stderr)
        return False

    for result in verifier.results:
        print(
            f"  PASS   [{result.mode}] {len(result.output)} items, "
            f"{result.callback_count} calls, {result.snapshot_cycles} snapshot cycles"
        )
    return True
