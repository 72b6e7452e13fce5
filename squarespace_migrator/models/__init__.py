"""
Typed records passed between the pipeline stages.
"""

from .blog_post import (
    AssetFailure,
    AssetRecord,
    ImportedAsset,
    LinkInventory,
    OutcomeRecord,
    PostFailure,
    PostRecord,
)

__all__ = [
    "AssetFailure",
    "AssetRecord",
    "ImportedAsset",
    "LinkInventory",
    "OutcomeRecord",
    "PostFailure",
    "PostRecord",
]
