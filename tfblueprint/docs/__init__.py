"""
Standardization guides rendered as Markdown.
"""

from .guide import GuideBuilder, standards_guide

__all__ = ["GuideBuilder", "standards_guide"]
