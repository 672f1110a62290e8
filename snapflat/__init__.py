"""snapflat — install Snap and Flatpak/Flathub on Debian-family hosts."""

__version__ = "0.1.0"
