"""Plugins command for flowunit CLI."""

from flowunit.plugin.discovery import PROCESSORS_GROUP, discover_processors


def cmd_plugins_list() -> int:
    """List all registered processors.

    Returns:
        Exit code (0 for success).
    """
    print("Available Processors:")
    print("-" * 40)

    processors = discover_processors()
    if processors:
        for name, ep in sorted(processors.items()):
            print(f"  {name:<20} {ep.value}")
    else:
        print("  (none found)")

    print()
    print("To register processors, add entry points in pyproject.toml:")
    print(f'  [project.entry-points."{PROCESSORS_GROUP}"]')
    print('  my_processor = "mypackage.processors:MyProcessor"')

    return 0
