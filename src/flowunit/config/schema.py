"""Pydantic validation models for verification scenario files.

A scenario file describes one or more processors to run through the
verification harness, with their input, expected output and harness
settings.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from flowunit.core.items import Watermark


def _to_item(value: Any) -> Any:
    if isinstance(value, dict) and set(value) == {"watermark"}:
        return Watermark(int(value["watermark"]))
    return value


class SinkSchema(BaseModel):
    """Configuration for an observability sink.

    Attributes:
        type: Sink type (file, console, memory, null).
        path: File path for file sinks.
        options: Additional sink-specific options.
    """

    type: Literal["file", "console", "memory", "null"] = "file"
    path: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_file_sink_has_path(self) -> "SinkSchema":
        """Validate that file sinks have a path."""
        if self.type == "file" and not self.path:
            raise ValueError("File sink requires 'path' to be set")
        return self


class ObservabilitySchema(BaseModel):
    """Configuration for tracing.

    Attributes:
        level: Trace level (off, minimal, normal, verbose).
        sinks: List of sink configurations.
    """

    level: Literal["off", "minimal", "normal", "verbose"] = "off"
    sinks: List[SinkSchema] = Field(default_factory=list)


class HarnessSchema(BaseModel):
    """Harness switches for one scenario.

    Attributes:
        complete_call: Drive ``complete()`` after the input is exhausted.
        logging: Log every callback at DEBUG.
        progress_assertion: Fail on calls that make no progress.
        snapshots: Run the snapshot passes.
        cooperative_timeout_ms: Per-call limit for cooperative processors.
        outbox_capacity: Bucket capacity for non-cooperative processors
            (None means unbounded).
    """

    complete_call: bool = True
    logging: bool = True
    progress_assertion: bool = True
    snapshots: bool = True
    cooperative_timeout_ms: float = Field(default=1000.0, gt=0)
    outbox_capacity: Optional[int] = Field(default=None, ge=1)


class ScenarioSchema(BaseModel):
    """One processor under verification.

    Attributes:
        processor: Registered plugin name or ``package.module:attr``.
        args: Keyword arguments passed to the processor factory.
        input: Items fed to the processor. A mapping ``{watermark: N}``
            stands for a watermark with timestamp N.
        expected_output: Items the processor must emit, in order.
        any_order: Compare output ignoring order.
        harness: Harness switches.
    """

    processor: str
    args: Dict[str, Any] = Field(default_factory=dict)
    input: List[Any] = Field(default_factory=list)
    expected_output: List[Any] = Field(default_factory=list)
    any_order: bool = False
    harness: HarnessSchema = Field(default_factory=HarnessSchema)

    @field_validator("processor")
    @classmethod
    def validate_processor_ref(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("processor must not be empty")
        if ":" in v:
            module, _, attr = v.partition(":")
            if not module or not attr:
                raise ValueError(
                    f"Invalid processor reference '{v}', expected 'package.module:attr'"
                )
        return v

    @field_validator("input", "expected_output")
    @classmethod
    def validate_no_null_items(cls, v: List[Any]) -> List[Any]:
        if any(item is None for item in v):
            raise ValueError("items must not be null")
        return v

    def input_items(self) -> List[Any]:
        """Input with ``{watermark: N}`` mappings turned into Watermarks."""
        return [_to_item(item) for item in self.input]

    def expected_items(self) -> List[Any]:
        return [_to_item(item) for item in self.expected_output]


class ScenarioFileSchema(BaseModel):
    """Root configuration schema.

    Attributes:
        version: Scenario file version (currently "1.0").
        scenarios: Mapping of scenario names to their configurations.
        observability: Tracing settings applied while scenarios run.
    """

    version: str = "1.0"
    scenarios: Dict[str, ScenarioSchema] = Field(min_length=1)
    observability: ObservabilitySchema = Field(default_factory=ObservabilitySchema)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate scenario file version."""
        supported = {"1.0"}
        if v not in supported:
            raise ValueError(
                f"Unsupported config version: {v}. Supported: {supported}"
            )
        return v
