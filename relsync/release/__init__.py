"""Release reconciliation domain.

Pure rules (semver, tags, batching, queries, keys) plus the reconciler that
drives the tracker and source-control collaborators declared in
``contracts``. Nothing in this package imports an adapter or the CLI.
"""

from __future__ import annotations
