"""General utility functions."""

import importlib
from importlib.util import find_spec
from typing import Any

from sqlnest.exceptions import MissingDependencyError

__all__ = ("ensure_installed", "import_string")


def ensure_installed(package: str, install_package: "str | None" = None) -> None:
    """Raise :class:`MissingDependencyError` unless ``package`` can be imported.

    Args:
        package: Top-level module name.
        install_package: Extra/distribution name to suggest, when different.

    Raises:
        MissingDependencyError: The package is not installed.
    """
    if find_spec(package) is None:
        raise MissingDependencyError(package, install_package)


def import_string(dotted_path: str) -> "Any":
    """Dotted Path Import.

    Import a dotted module path and return the attribute/class designated by the
    last name in the path. Raise ImportError if the import failed.

    Args:
        dotted_path: The path of the module to import.

    Raises:
        ImportError: Could not import the module.

    Returns:
        object: The imported object.
    """
    module_path, _, attr = dotted_path.rpartition(".")
    if not module_path:
        msg = f"{dotted_path} doesn't look like a module path"
        raise ImportError(msg)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        msg = f"Could not import '{dotted_path}': {e}"
        raise ImportError(msg) from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        msg = f"Module '{module_path}' has no attribute '{attr}' in '{dotted_path}'"
        raise ImportError(msg) from e
