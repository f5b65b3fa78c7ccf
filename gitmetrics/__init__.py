"""git-metrics — track a numeric metric across the recent commits of a branch."""

__version__ = "0.1.0"
