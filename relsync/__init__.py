"""Release version reconciliation between GitHub and Jira."""

__version__ = "0.3.0"
