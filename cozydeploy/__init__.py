"""cozydeploy - provision a sensor and an application host over SSH."""

__version__ = "1.0.0"
