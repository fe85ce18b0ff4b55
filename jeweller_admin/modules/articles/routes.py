"""
Articles API Routes
===================

Article CRUD on the 'articles' collection. Articles keep both the
categories/locations arrays and the legacy single category/location
fields so older app builds keep working.
"""

import logging

from flask import request, jsonify, current_app

from . import articles_bp
from ...core.errors import StoreError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def get_extension():
    return current_app.extensions['jeweller_admin']


def get_store():
    return get_extension().store


def _clean_list(value):
    """Strip blanks and duplicates, keep order"""
    if isinstance(value, str):
        value = [value]
    result = []
    for item in value or []:
        item = str(item).strip()
        if item and item not in result:
            result.append(item)
    return result


def build_article_fields(data):
    """Document fields from a request body"""
    categories = _clean_list(data.get('categories'))
    locations = _clean_list(data.get('locations'))
    return {
        'title': (data.get('title') or '').strip(),
        'content': data.get('content') or '',
        'imageUrl': data.get('imageUrl') or None,
        'url': data.get('url') or None,
        'categories': categories,
        'category': categories[0] if categories else '',
        'locations': locations,
        'location': locations[0] if locations else '',
    }


def _notify(article_id, fields):
    outcome = get_extension().notification_service.notify_new_article(
        article_id,
        title=fields.get('title'),
        categories=fields.get('categories'),
        locations=fields.get('locations'),
        image_url=fields.get('imageUrl'),
    )
    return outcome.to_dict()


@articles_bp.route('', methods=['GET'])
def get_articles():
    """Get all articles"""
    try:
        return jsonify(get_store().list_articles())
    except StoreError as e:
        logger.error(f"Error getting articles: {e}")
        return jsonify({'error': str(e)}), 503


@articles_bp.route('/<article_id>', methods=['GET'])
def get_article(article_id):
    """Get single article"""
    try:
        article = get_store().get_article(article_id)
        if article:
            return jsonify(article)
        return jsonify({'error': 'Article not found'}), 404
    except StoreError as e:
        logger.error(f"Error getting article: {e}")
        return jsonify({'error': str(e)}), 503


@articles_bp.route('', methods=['POST'])
def create_article():
    """Create new article, then notify devices unless notify is false"""
    try:
        data = request.get_json(silent=True) or {}
        fields = build_article_fields(data)

        if not fields['title'] or not fields['content']:
            return jsonify({'error': 'Title and content are required'}), 400

        article_id = get_store().create_article(fields)
        LoggingService.info('articles', f"Article created: {fields['title']}", {'article_id': article_id})

        response = {'success': True, 'id': article_id}
        if data.get('notify', True):
            response['notification'] = _notify(article_id, fields)

        return jsonify(response), 201
    except StoreError as e:
        logger.error(f"Error creating article: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error creating article: {e}")
        return jsonify({'error': str(e)}), 500


@articles_bp.route('/<article_id>', methods=['PUT'])
def update_article(article_id):
    """Update article; notify only when the body asks for it"""
    try:
        data = request.get_json(silent=True) or {}
        fields = build_article_fields(data)

        if not fields['title'] or not fields['content']:
            return jsonify({'error': 'Title and content are required'}), 400

        if not get_store().update_article(article_id, fields):
            return jsonify({'error': 'Article not found'}), 404

        LoggingService.info('articles', f"Article updated: {fields['title']}", {'article_id': article_id})

        response = {'success': True, 'message': 'Article updated successfully'}
        if data.get('notify', False):
            response['notification'] = _notify(article_id, fields)

        return jsonify(response)
    except StoreError as e:
        logger.error(f"Error updating article: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error updating article: {e}")
        return jsonify({'error': str(e)}), 500


@articles_bp.route('/<article_id>', methods=['DELETE'])
def delete_article(article_id):
    """Delete article and remove it from users' saved articles"""
    try:
        removed_from = get_store().delete_article(article_id)
        if removed_from is False:
            return jsonify({'error': 'Article not found'}), 404

        LoggingService.info('articles', f"Article deleted: {article_id}",
                            {'removed_from_saved': removed_from})
        return jsonify({
            'success': True,
            'message': 'Article and related data deleted successfully.',
            'removedFromSaved': removed_from,
        })
    except StoreError as e:
        logger.error(f"Error deleting article: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error deleting article: {e}")
        return jsonify({'error': 'Internal server error'}), 500
