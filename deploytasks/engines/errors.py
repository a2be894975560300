"""Base exception shared by the deploy tool engines."""


class DeployToolError(Exception):
    """Base class for errors the CLI reports without a traceback."""
