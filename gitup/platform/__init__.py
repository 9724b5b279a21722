"""Platform abstraction layer."""

from .paths import (
    home,
    is_windows,
    user_config_dir,
)
from .process import (
    ProcessError,
    run,
)

__all__ = [
    # paths
    "home",
    "is_windows",
    "user_config_dir",
    # process
    "ProcessError",
    "run",
]
