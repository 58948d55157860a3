"""lsboot - language-server bootstrap for editor extensions.

Resolves which release of a language-server binary the host needs, makes
sure it is present in the working directory, and launches it.
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy import package components."""
    if name in ("Bootstrap", "Plugin", "LocalHost", "LaunchResult"):
        from . import bootstrap
        return getattr(bootstrap, name)
    if name in ("BootstrapProfile", "ResolvedConfig"):
        from .core import config_schema
        return getattr(config_schema, name)
    if name == "TERRAFORM_LS":
        from .core.profiles import TERRAFORM_LS
        return TERRAFORM_LS
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
