"""Plugin discovery and loading.

Processors are found through the ``flowunit.processors`` entry point
group or referenced directly as ``package.module:attr``.
"""

from flowunit.plugin.discovery import (
    PROCESSORS_GROUP,
    discover_processors,
    load_processor,
    resolve_processor,
)

__all__ = [
    "discover_processors",
    "load_processor",
    "resolve_processor",
    "PROCESSORS_GROUP",
]
