"""Global XDG-compliant directory paths for lsboot.

The CLI uses ``GlobalPath.bin()`` as the default working directory where
language-server binaries are provisioned; logs live next to it.
"""

from pathlib import Path
from platformdirs import user_config_dir, user_data_dir

APP_NAME = "lsboot"


class GlobalPath:
    """Global path management for lsboot directories."""

    @classmethod
    def data(cls) -> str:
        """Application data directory."""
        return user_data_dir(APP_NAME)

    @classmethod
    def bin(cls) -> str:
        """Binary/executable storage directory."""
        return str(Path(cls.data()) / "bin")

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        """Configuration directory, searched for ``<name>.json`` profiles."""
        return user_config_dir(APP_NAME)

