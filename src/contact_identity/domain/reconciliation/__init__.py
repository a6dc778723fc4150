"""Identity reconciliation core.

Contacts form clusters: connected components under "shares an email or a phone
number". Each cluster has exactly one Representative, its oldest live contact;
every other contact is a Member pointing straight at it.

Stages, in order:
1) resolve matched contacts to the clusters they belong to
2) select the true primary among the touched clusters' Representatives
3) merge: demote stale Representatives and repoint their Members
4) ingest: add a Member when the submitted fact is new to the merged cluster
5) project the cluster into a consolidated identity
"""

from __future__ import annotations

from .atomic import run_atomically
from .ingest import IngestResult, ingest_fact, new_facts
from .merge import MergeResult, merge_clusters
from .primary import PrimarySelection, select_primary
from .resolve import (
    ResolvedClusters,
    find_inconsistency,
    resolve_clusters,
    root_ids_for,
    verify_membership,
)
from .response import build_identity
from .service import IdentifyContact

__all__ = [
    "IdentifyContact",
    "IngestResult",
    "MergeResult",
    "PrimarySelection",
    "ResolvedClusters",
    "build_identity",
    "find_inconsistency",
    "ingest_fact",
    "merge_clusters",
    "new_facts",
    "resolve_clusters",
    "root_ids_for",
    "run_atomically",
    "select_primary",
    "verify_membership",
]
