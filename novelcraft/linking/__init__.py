"""Link parsing, resolution and the reference index."""

from novelcraft.linking.index import RebuildStatistics, RecomputeResult, ReferenceIndex
from novelcraft.linking.parser import LinkOccurrence, parse_links
from novelcraft.linking.resolver import LinkCandidate, ReferenceResolver, Resolution

__all__ = [
    "LinkCandidate",
    "LinkOccurrence",
    "RebuildStatistics",
    "RecomputeResult",
    "ReferenceIndex",
    "ReferenceResolver",
    "Resolution",
    "parse_links",
]
