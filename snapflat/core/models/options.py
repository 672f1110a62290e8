"""
Options — the three user flags and the configuration they resolve to.

``RequestedOptions`` comes from the command line. ``ResolvedConfig`` is
what the gatekeeper hands to the installation phase once every check
has passed. Both are immutable.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RequestedOptions(BaseModel):
    """Flags parsed from the command line."""

    model_config = ConfigDict(frozen=True)

    install_gnome_software: bool = False
    install_kde_discover: bool = False
    skip_update: bool = False

    @property
    def store_selected(self) -> bool:
        return self.install_gnome_software or self.install_kde_discover


class ParsedArgs(BaseModel):
    """Outcome of argument parsing.

    ``help_requested`` short-circuits the whole run; ``options`` is then
    left at its defaults.
    """

    model_config = ConfigDict(frozen=True)

    options: RequestedOptions = RequestedOptions()
    help_requested: bool = False
    argv: tuple[str, ...] = ()


class ResolvedConfig(BaseModel):
    """Configuration for the mutating phase."""

    model_config = ConfigDict(frozen=True)

    install_gnome_software: bool = False
    install_kde_discover: bool = False
    skip_update: bool = False
    init_system_available: bool = False
