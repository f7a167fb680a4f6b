"""
Version information for the credential relay.
"""
from importlib import metadata

DEFAULT_VERSION = "0.1.0"


def package_version(distribution: str = "credential-relay") -> str:
    """Installed version of distribution, or DEFAULT_VERSION when not installed."""
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return DEFAULT_VERSION


__version__ = package_version()
