"""
Notifications API Routes
========================

POST /api/notifications           - notify devices about an article
POST /api/notifications/targeted  - send to explicit tokens / user ids
POST /api/notifications/topic     - broadcast to an FCM topic
"""

import logging

from flask import request, jsonify, current_app

from . import notifications_bp

logger = logging.getLogger(__name__)

# error_kind -> HTTP status; everything else the pipeline reports is a 200
STATUS_BY_KIND = {
    'validation': 400,
    'not_found': 404,
}


def get_notification_service():
    return current_app.extensions['jeweller_admin'].notification_service


def _outcome_response(outcome):
    status = STATUS_BY_KIND.get(outcome.error_kind, 200)
    return jsonify(outcome.to_dict()), status


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


@notifications_bp.route('', methods=['POST'])
def send_article_notification():
    """Send push notification about an article"""
    try:
        data = _json_body()
        if data is None:
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        article_id = data.get('articleId')
        title = data.get('title')

        if not article_id or not title:
            return jsonify({'error': 'Missing required fields. articleId and title are required.'}), 400

        outcome = get_notification_service().notify_new_article(
            article_id,
            title=title,
            categories=data.get('categories'),
            locations=data.get('locations'),
            image_url=data.get('imageUrl'),
        )
        return _outcome_response(outcome)
    except Exception as e:
        logger.error(f"Error in notifications API: {e}")
        return jsonify({'success': False, 'error': str(e) or 'Internal server error'}), 500


@notifications_bp.route('/targeted', methods=['POST'])
def send_targeted():
    """Send to specific tokens and/or users"""
    try:
        data = _json_body()
        if data is None:
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        if not data.get('title') or not data.get('body'):
            return jsonify({'error': 'title and body are required'}), 400

        outcome = get_notification_service().send_targeted_notification(
            data['title'],
            data['body'],
            tokens=data.get('tokens') or [],
            user_ids=data.get('userIds') or [],
            data=data.get('data') or {},
            channel_id=data.get('channelId'),
            image_url=data.get('imageUrl'),
        )
        return _outcome_response(outcome)
    except Exception as e:
        logger.error(f"Error in targeted notifications API: {e}")
        return jsonify({'success': False, 'error': str(e) or 'Internal server error'}), 500


@notifications_bp.route('/topic', methods=['POST'])
def send_topic():
    """Broadcast to a topic"""
    try:
        data = _json_body()
        if data is None:
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        outcome = get_notification_service().send_topic_notification(
            data.get('topic'),
            data.get('title'),
            data.get('body'),
            data=data.get('data') or {},
            image_url=data.get('imageUrl'),
        )
        return _outcome_response(outcome)
    except Exception as e:
        logger.error(f"Error in topic notifications API: {e}")
        return jsonify({'success': False, 'error': str(e) or 'Internal server error'}), 500
