"""
Articles Admin Module
=====================

JSON API for article management against the document store.

Provides:
- Article creation, editing and deletion
- Push notification on create (and on update when asked)
- Cleanup of users' saved articles on delete
"""

from flask import Blueprint

articles_bp = Blueprint(
    'articles',
    __name__,
    url_prefix='/api/articles'
)

from . import routes

__all__ = ['articles_bp']
