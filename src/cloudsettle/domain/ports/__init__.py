"""Domain port definitions for adapters."""

from __future__ import annotations

from .cloud import CloudAPI, ClusterAPI, ClusterPatch, FloatingIPAPI, RouterAPI
from .remote import MutationInvoker, RemoteObjectAccessor

__all__ = [
    "CloudAPI",
    "ClusterAPI",
    "ClusterPatch",
    "FloatingIPAPI",
    "MutationInvoker",
    "RemoteObjectAccessor",
    "RouterAPI",
]
