"""
markupdeck - build tool for static markup publishing projects.

markupdeck optimizes images, packs sprite sheets, minifies stylesheets,
bundles scripts, renders HTML pages with Jinja2, and generates a project
index page listing every document with its status and last commit.
"""

__version__ = "1.0.0"

from .core import MarkupDeck
from .index import BuildSummary, DocumentRecord, IndexConfig, IndexMetadataBuilder

__all__ = ['MarkupDeck', 'BuildSummary', 'DocumentRecord', 'IndexConfig', 'IndexMetadataBuilder']
