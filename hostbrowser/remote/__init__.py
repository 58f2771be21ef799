"""Remote hosted-browser execution."""

from hostbrowser.remote.client import RemoteExecutionClient

__all__ = ["RemoteExecutionClient"]
