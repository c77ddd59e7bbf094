"""TCP matchmaking server and console client that queue players for games."""

__version__ = "0.1.0"
__all__ = ["games", "server", "client"]