"""
Taxonomy API Routes
===================

GET    /api/<kind>          - list with article counts
POST   /api/<kind>          - create {name, imageUrl?}
PUT    /api/<kind>/<id>     - rename, cascaded into articles
DELETE /api/<kind>/<id>     - delete, removed from articles

<kind> is 'categories' or 'locations'.
"""

import logging

from flask import request, jsonify, current_app

from . import taxonomy_bp
from ...core.errors import StoreError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)

# kind -> (array field, legacy single field) on article documents
ARTICLE_FIELDS = {
    'categories': ('categories', 'category'),
    'locations': ('locations', 'location'),
}


def get_store():
    return current_app.extensions['jeweller_admin'].store


def _collection(kind):
    store = get_store()
    return store.categories if kind == 'categories' else store.locations


def article_names(article, kind):
    """Names an article is tagged with, from the array or the legacy field"""
    array_field, single_field = ARTICLE_FIELDS[kind]
    values = article.get(array_field)
    if isinstance(values, list):
        return values
    single = article.get(single_field)
    return [single] if single else []


def count_articles(articles, kind):
    counts = {}
    for article in articles:
        for name in article_names(article, kind):
            counts[name] = counts.get(name, 0) + 1
    return counts


def rename_updates(articles, kind, old_name, new_name):
    """{article_id: fields} replacing old_name with new_name"""
    array_field, single_field = ARTICLE_FIELDS[kind]
    updates = {}
    for article in articles:
        values = article.get(array_field)
        if isinstance(values, list):
            if old_name in values:
                updates[article['id']] = {
                    array_field: [new_name if v == old_name else v for v in values],
                    single_field: new_name if article.get(single_field) == old_name else article.get(single_field, ''),
                }
        elif article.get(single_field) == old_name:
            updates[article['id']] = {single_field: new_name, array_field: [new_name]}
    return updates


def removal_updates(articles, kind, name):
    """{article_id: fields} removing name; the primary falls back to the first remaining"""
    array_field, single_field = ARTICLE_FIELDS[kind]
    updates = {}
    for article in articles:
        values = article.get(array_field)
        if isinstance(values, list):
            if name in values:
                remaining = [v for v in values if v != name]
                primary = article.get(single_field, '')
                if primary == name:
                    primary = remaining[0] if remaining else ''
                updates[article['id']] = {array_field: remaining, single_field: primary}
        elif article.get(single_field) == name:
            updates[article['id']] = {single_field: '', array_field: []}
    return updates


def _name_taken(items, name, exclude_id=None):
    return any(
        (item.get('name') or '').lower() == name.lower() and item.get('id') != exclude_id
        for item in items
    )


@taxonomy_bp.route('/<any(categories, locations):kind>', methods=['GET'])
def list_items(kind):
    """List categories or locations with how many articles use each"""
    try:
        store = get_store()
        items = store.list_documents(_collection(kind))
        counts = count_articles(store.list_articles(), kind)
        for item in items:
            item['articleCount'] = counts.get(item.get('name'), 0)
        return jsonify(items)
    except StoreError as e:
        logger.error(f"Error listing {kind}: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error listing {kind}: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@taxonomy_bp.route('/<any(categories, locations):kind>', methods=['POST'])
def create_item(kind):
    """Create a category or location"""
    try:
        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Name is required'}), 400

        store = get_store()
        collection = _collection(kind)
        if _name_taken(store.list_documents(collection), name):
            return jsonify({'error': f'"{name}" already exists'}), 409

        item_id = store.add_document(collection, {'name': name, 'imageUrl': data.get('imageUrl') or ''})
        LoggingService.info('taxonomy', f"Created {kind} entry: {name}")
        return jsonify({'success': True, 'id': item_id, 'name': name}), 201
    except StoreError as e:
        logger.error(f"Error creating in {kind}: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error creating in {kind}: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@taxonomy_bp.route('/<any(categories, locations):kind>/<item_id>', methods=['PUT'])
def rename_item(kind, item_id):
    """Rename and rewrite every article tagged with the old name"""
    try:
        data = request.get_json(silent=True) or {}
        new_name = (data.get('name') or '').strip()
        if not new_name:
            return jsonify({'error': 'Name is required'}), 400

        store = get_store()
        collection = _collection(kind)
        item = store.get_document(collection, item_id)
        if not item:
            return jsonify({'error': 'Not found'}), 404

        if _name_taken(store.list_documents(collection), new_name, exclude_id=item_id):
            return jsonify({'error': f'Another entry named "{new_name}" already exists'}), 409

        old_name = item.get('name')
        store.update_document(collection, item_id, {'name': new_name})

        updates = {}
        if new_name != old_name:
            updates = rename_updates(store.list_articles(), kind, old_name, new_name)
            if updates:
                store.commit_article_updates(updates)

        LoggingService.info('taxonomy', f"Renamed {old_name} -> {new_name}",
                            {'kind': kind, 'articles_updated': len(updates)})
        return jsonify({'success': True, 'articlesUpdated': len(updates)})
    except StoreError as e:
        logger.error(f"Error renaming in {kind}: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error renaming in {kind}: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@taxonomy_bp.route('/<any(categories, locations):kind>/<item_id>', methods=['DELETE'])
def delete_item(kind, item_id):
    """Delete and strip the name from every article"""
    try:
        store = get_store()
        collection = _collection(kind)
        item = store.get_document(collection, item_id)
        if not item:
            return jsonify({'error': 'Not found'}), 404

        updates = removal_updates(store.list_articles(), kind, item.get('name'))
        store.commit_article_updates(updates, delete=(collection, item_id))

        LoggingService.info('taxonomy', f"Deleted {item.get('name')}",
                            {'kind': kind, 'articles_updated': len(updates)})
        return jsonify({'success': True, 'articlesUpdated': len(updates)})
    except StoreError as e:
        logger.error(f"Error deleting from {kind}: {e}")
        return jsonify({'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Error deleting from {kind}: {e}")
        return jsonify({'error': 'Internal server error'}), 500
