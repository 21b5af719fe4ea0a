"""Policies deciding when a chapter save also records a revision."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime

from novelcraft.utils.config import Config


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SnapshotPolicy(ABC):
    """Decides whether a successful chapter save should be snapshotted."""

    name: str

    @abstractmethod
    def should_snapshot(self, last_snapshot_at: datetime | None, now: datetime) -> bool:
        """Return True if a new revision should be recorded.

        Args:
            last_snapshot_at: Timestamp of the chapter's latest revision, if any
            now: Time of the save
        """


class TimeBucketPolicy(SnapshotPolicy):
    """At most one automatic snapshot per chapter per fixed time bucket.

    Buckets are aligned to the Unix epoch, e.g. with a 600 second bucket a
    save at 10:04 is snapshotted unless a revision already exists from 10:00
    onwards.
    """

    name = "time_bucket"

    def __init__(self, bucket_seconds: int = 600) -> None:
        if bucket_seconds <= 0:
            raise ValueError("bucket_seconds must be positive")
        self.bucket_seconds = bucket_seconds

    def bucket_of(self, moment: datetime) -> int:
        return int(as_utc(moment).timestamp() // self.bucket_seconds)

    def should_snapshot(self, last_snapshot_at: datetime | None, now: datetime) -> bool:
        if last_snapshot_at is None:
            return True
        return self.bucket_of(now) != self.bucket_of(last_snapshot_at)


class OnDemandPolicy(SnapshotPolicy):
    """Never snapshots automatically; revisions come only from explicit requests."""

    name = "on_demand"

    def should_snapshot(self, last_snapshot_at: datetime | None, now: datetime) -> bool:
        return False


def policy_from_config(config: Config) -> SnapshotPolicy:
    """Build the snapshot policy selected by REVISION_SNAPSHOT_POLICY."""
    if config.revision_snapshot_policy == OnDemandPolicy.name:
        return OnDemandPolicy()
    return TimeBucketPolicy(config.revision_bucket_seconds)
