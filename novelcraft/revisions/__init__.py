"""Chapter revision history."""

from novelcraft.revisions.policy import (
    OnDemandPolicy,
    SnapshotPolicy,
    TimeBucketPolicy,
    policy_from_config,
)
from novelcraft.revisions.store import RevisionStore

__all__ = [
    "OnDemandPolicy",
    "RevisionStore",
    "SnapshotPolicy",
    "TimeBucketPolicy",
    "policy_from_config",
]
