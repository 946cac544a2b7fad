"""
Target Directory Resolution
===========================

Turns the configured target directory into an absolute path. Relative
inputs are anchored at the user's home directory.
"""

from pathlib import Path
from typing import Optional, Union

from dirsorter.utils.exceptions import ConfigurationError
from dirsorter.utils.logging_config import get_logger

logger = get_logger(__name__)


def home_directory() -> Path:
    """Read the current user's home directory from the environment.

    Raises:
        ConfigurationError: If no home directory can be determined.
    """
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as e:
        raise ConfigurationError(
            "Could not determine the home directory",
            config_key="HOME",
            cause=e
        )
    if not home.is_absolute():
        raise ConfigurationError(
            f"Home directory is not absolute: {home}",
            config_key="HOME"
        )
    return home


def resolve_target_directory(
    configured: Union[str, Path],
    home: Optional[Path] = None
) -> Path:
    """Resolve the configured target directory to an absolute path.

    Args:
        configured: Directory as given by the user, absolute or relative.
        home: Base for relative inputs. Read from the environment when
              not supplied.

    Returns:
        Absolute path. Absolute inputs are returned unchanged.

    Raises:
        ConfigurationError: If the input is not a usable path or the home
                            directory cannot be determined.
    """
    raw = str(configured)
    if not raw.strip() or "\x00" in raw:
        raise ConfigurationError(
            f"Invalid target directory: {raw!r}",
            config_key="target_directory",
            expected_type="path"
        )

    path = Path(raw)
    if path.is_absolute():
        return path

    # "~" and "~/x" are home-relative just like "x"
    if path.parts and path.parts[0] == "~":
        path = Path(*path.parts[1:])

    base = home if home is not None else home_directory()
    if not base.is_absolute():
        raise ConfigurationError(
            f"Home directory is not absolute: {base}",
            config_key="HOME"
        )

    resolved = base / path
    logger.debug(f"Resolved {raw!r} against {base} -> {resolved}")
    return resolved
