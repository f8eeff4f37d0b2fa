"""kube-ownercheck — verify Kubernetes ownerReferences against live objects."""

__version__ = "0.1.0"
