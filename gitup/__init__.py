"""gitup - batch-update local git clones from their remotes."""

__version__ = "0.3.0"
