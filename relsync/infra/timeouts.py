from __future__ import annotations

# gh api / gh api graphql
GH_TIMEOUT_SECONDS = 60.0

# Jira REST requests
JIRA_TIMEOUT_SECONDS = 30.0

# Commit-mining script (walks the local git history)
MINER_TIMEOUT_SECONDS = 5 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
