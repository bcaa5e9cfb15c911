"""Lazy-loading explorer tree."""

from stratus.tree.children import ChangeKind, ChildrenChange, ChildSequence
from stratus.tree.loader import CategoryNode, ListingNode
from stratus.tree.node import ErrorPlaceholder, LoadingPlaceholder, Node
from stratus.tree.preload import PreloadOrchestrator, PreloadReport, PreloadStatus

__all__ = [
    "CategoryNode",
    "ChangeKind",
    "ChildSequence",
    "ChildrenChange",
    "ErrorPlaceholder",
    "ListingNode",
    "LoadingPlaceholder",
    "Node",
    "PreloadOrchestrator",
    "PreloadReport",
    "PreloadStatus",
]
