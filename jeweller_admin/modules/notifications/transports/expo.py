"""
Expo Push Adapter
=================

Sends batches to the Expo push service, which accepts up to 100 tokens per
request and answers with one ticket per token in request order.
"""

import json

import requests

from ....core.errors import TransportError
from ..models import BatchSuccess, Receipt
from .base import PushTransport

PUSH_URL = "https://exp.host/--/api/v2/push/send"
TOKEN_PREFIX = "ExponentPushToken"


class ExpoTransport(PushTransport):
    """Expo push gateway over HTTPS"""

    name = 'expo'
    token_field = 'pushToken'

    def __init__(self, push_url=PUSH_URL, access_token=None, timeout=30):
        self.push_url = push_url or PUSH_URL
        self.access_token = access_token
        self.timeout = timeout

    def is_valid_token(self, token):
        return isinstance(token, str) and token.startswith(TOKEN_PREFIX)

    def build_request(self, batch, message):
        """JSON body for one batch"""
        body = {
            'to': list(batch.tokens),
            'title': message.title,
            'body': message.body,
            'data': message.data,
            'sound': message.sound,
            'channelId': message.channel_id,
            'priority': message.priority,
        }
        if message.badge is not None:
            body['badge'] = message.badge

        # Rich image: iOS reads attachments, Android picks it up via the channel
        if message.image_url:
            body['mutableContent'] = True
            body['_displayInForeground'] = True
            body['attachments'] = {'url': message.image_url}

        return body

    def _headers(self):
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def send_batch(self, batch, message):
        try:
            resp = requests.post(
                self.push_url,
                json=self.build_request(batch, message),
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.Timeout as e:
            raise TransportError(f'Expo Push API timeout after {self.timeout}s: {e}') from e
        except requests.RequestException as e:
            status_code = None
            error_detail = ''
            if getattr(e, 'response', None) is not None:
                status_code = e.response.status_code
                error_detail = e.response.text
            raise TransportError(
                f'Expo Push API error: {e} {error_detail}'.strip(),
                status_code=status_code,
            ) from e

        try:
            result = resp.json()
        except ValueError as e:
            raise TransportError(f'Expo Push API returned invalid JSON: {e}') from e

        return BatchSuccess(batch=batch, receipts=tuple(parse_receipts(batch, result)))


def parse_receipts(batch, result):
    """
    Normalize an Expo response into receipts.

    Expo answers either {"data": [ticket, ...]} with tickets in token order,
    {"data": ticket} for a single-recipient request, or {"errors": [...]}
    when the whole request was rejected.
    """
    if not isinstance(result, dict):
        return [Receipt(token=None, status='error', message=f'Unexpected response: {result!r}')]

    data = result.get('data')
    if isinstance(data, dict):
        data = [data]

    if isinstance(data, list):
        receipts = []
        for position, ticket in enumerate(data):
            token = batch.tokens[position] if position < len(batch.tokens) else None
            ticket = ticket if isinstance(ticket, dict) else {'status': str(ticket)}
            receipts.append(Receipt(
                token=token,
                status=ticket.get('status', 'error'),
                message=ticket.get('message'),
                details=ticket.get('details') or ({'id': ticket['id']} if ticket.get('id') else None),
            ))
        for token in batch.tokens[len(data):]:
            receipts.append(Receipt(token=token, status='error', message='No ticket returned for token'))
        return receipts

    errors = result.get('errors') or []
    if errors:
        return [
            Receipt(
                token=None,
                status='error',
                message=(err.get('message') if isinstance(err, dict) else None) or json.dumps(err),
                details={'code': err.get('code')} if isinstance(err, dict) and err.get('code') else None,
            )
            for err in errors
        ]

    # No tickets and no errors: Expo accepted the request
    return [Receipt(token=token, status='ok') for token in batch.tokens]
