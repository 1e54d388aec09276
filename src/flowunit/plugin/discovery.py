"""Plugin discovery for flowunit.

Processor factories register themselves under the ``flowunit.processors``
entry point group in their pyproject.toml:

```toml
[project.entry-points."flowunit.processors"]
dedup = "myplugin.processors:DedupProcessor"
```

A registered entry may be a Processor subclass or any callable that
returns a Processor instance.

Example:
    >>> from flowunit.plugin import discover_processors, resolve_processor
    >>> for name in discover_processors():
    ...     print(f"Found processor: {name}")
    >>> factory = resolve_processor("flowunit.processors:noop_p")
    >>> processor = factory()
"""

import importlib
from importlib.metadata import entry_points
from typing import Any, Callable, Dict

PROCESSORS_GROUP = "flowunit.processors"


def _get_entry_points(group: str) -> Dict[str, Any]:
    """Get entry points for a group, keyed by name."""
    return {ep.name: ep for ep in entry_points(group=group)}


def discover_processors() -> Dict[str, Any]:
    """Discover all registered processor plugins.

    Returns:
        Dict mapping processor names to their entry points.
    """
    return _get_entry_points(PROCESSORS_GROUP)


def load_processor(name: str) -> Callable[..., Any]:
    """Load a registered processor factory by name.

    Raises:
        KeyError: If no processor with the given name is registered.
        ImportError: If the entry point cannot be loaded.
    """
    processors = discover_processors()
    if name not in processors:
        raise KeyError(
            f"No processor registered with name '{name}'. "
            f"Available: {list(processors.keys())}"
        )
    return processors[name].load()


def _import_ref(ref: str) -> Callable[..., Any]:
    module_name, _, attr_path = ref.partition(":")
    module = importlib.import_module(module_name)
    target: Any = module
    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ImportError(f"'{ref}': {module_name} has no attribute '{attr_path}'") from e
    return target


def resolve_processor(ref: str) -> Callable[..., Any]:
    """Resolve a processor reference to a callable.

    Args:
        ref: Either a registered plugin name or ``package.module:attr``.

    Returns:
        A Processor subclass or a factory function.

    Raises:
        KeyError: Unknown plugin name.
        ImportError: The module or attribute cannot be imported.
        TypeError: The reference does not point to a callable.
    """
    target = _import_ref(ref) if ":" in ref else load_processor(ref)
    if not callable(target):
        raise TypeError(f"Processor reference '{ref}' is not callable")
    return target
