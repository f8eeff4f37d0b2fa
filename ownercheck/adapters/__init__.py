"""
Cluster adapters — the ways a check can reach a cluster.

    kubectl   — live cluster through ``kubectl get --raw``
    snapshot  — offline, in-memory cluster read from a file
"""
