# Client-side helpers

from ghostwire.client.view import MessageView

__all__ = ['MessageView']
