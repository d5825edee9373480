"""Write.as API client shared by the CLI commands and the publish engine."""

from .client import WriteAsClient, WriteAsError

__all__ = ["WriteAsClient", "WriteAsError"]
