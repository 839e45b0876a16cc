"""Adapters that talk to Jira, GitHub and the commit-mining script."""
