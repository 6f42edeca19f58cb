"""
Title clustering for near-duplicate stories.

Components:
- ClusteringConfig: window size and similarity threshold
- TitleClusterer: config-bound wrapper used by the ingestion orchestrator
- find_cluster_id / jaccard_similarity / tokenize: the pure heuristic
"""

from rss_tracker.clustering.config import ClusteringConfig
from rss_tracker.clustering.service import (
    TitleClusterer,
    find_cluster_id,
    jaccard_similarity,
    title_similarity,
    tokenize,
)

__all__ = [
    "ClusteringConfig",
    "TitleClusterer",
    "find_cluster_id",
    "jaccard_similarity",
    "title_similarity",
    "tokenize",
]
