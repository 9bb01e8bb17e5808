"""
pkgshelf: activation and maintenance layer of a package manager.

Activates resolved package versions into a module search path, loads declared
entry-point modules per dependency group, keeps the project's archive cache in
sync with the resolution and removes stale artifacts from the install root.
"""

__version__ = "0.1.0"

# Name of the package manager's own package; it is never cached.
TOOL_NAME = "pkgshelf"
