"""
Taxonomy Admin Module
=====================

Categories and locations used to tag articles and to filter push
notifications. Renames and deletions are cascaded into every article.
"""

from flask import Blueprint

taxonomy_bp = Blueprint(
    'taxonomy',
    __name__,
    url_prefix='/api'
)

from . import routes

__all__ = ['taxonomy_bp']
