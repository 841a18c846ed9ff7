"""Custom exceptions for quickvm."""


class LauncherError(RuntimeError):
    """Raised on unrecoverable configuration or runtime errors."""


class ConfigError(LauncherError):
    """Malformed, missing or unknown command-line arguments."""


class HostError(LauncherError):
    """The host cannot run the VM (unsupported architecture, missing binaries)."""


class ResourceError(LauncherError):
    """A referenced file (ISO, firmware, disk image) does not exist."""


class ProvisionError(LauncherError):
    """The disk image tool failed."""
