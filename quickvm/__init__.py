"""quickvm package."""

__all__ = [
    "accel",
    "cli",
    "command",
    "config",
    "constants",
    "disk",
    "exceptions",
    "firmware",
    "host",
    "models",
    "utils",
]
