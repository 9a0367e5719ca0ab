"""
Core models for the tag registry
"""
from .base import MAX_FOLDED_LENGTH, MAX_NAME_LENGTH, Tag, Tagging, TagQuerySet, folded_name_hash, tag_key
from .utils import EscapedLike
