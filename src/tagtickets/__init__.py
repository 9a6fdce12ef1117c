"""tagtickets - map issue-tracker tickets in commit messages onto release tags."""

__version__ = "0.1.0"
