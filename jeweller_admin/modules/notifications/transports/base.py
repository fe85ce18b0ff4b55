"""
Push Transport Base
===================

Common interface for push gateways. A transport knows which user field holds
its tokens, what a well-formed token looks like, and how to send one batch.

send_batch() returns a BatchSuccess with one Receipt per token the gateway
reported on, or raises TransportError when the call itself failed. Raw
gateway response shapes never leave the transport.
"""


class PushTransport:
    """Base class for push gateways"""

    name = 'base'
    # Field on user documents holding this transport's token
    token_field = None

    def is_valid_token(self, token):
        return isinstance(token, str) and bool(token.strip())

    def send_batch(self, batch, message):
        raise NotImplementedError

    def send_to_topic(self, topic, message):
        """Broadcast to a topic. Returns the gateway's message id."""
        raise NotImplementedError(f"{self.name} transport does not support topic messages")

    @property
    def supports_topics(self):
        return type(self).send_to_topic is not PushTransport.send_to_topic
