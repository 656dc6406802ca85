# Consumer-side model of one open conversation
#
# Messages for a group reach a client twice: the REST page load and the
# `history` push sent on join_group, with `new_message` events arriving in
# between. MessageView decides what gets rendered so that every message id
# shows up exactly once.

import logging

logger = logging.getLogger(__name__)

SOURCE_NONE = None
SOURCE_REST = 'rest'
SOURCE_HISTORY = 'history'


def message_group_id(message):
    # Live events carry targetId; REST rows may carry group_id / groupId
    return message.get('targetId') or message.get('groupId') or message.get('group_id')


class MessageView:

    def __init__(self, group_id=None):
        self.group_id = group_id
        self.source = SOURCE_NONE
        self._messages = []
        self._ids = set()

    def select(self, group_id):
        # Switch to another conversation; nothing rendered yet
        self.group_id = group_id
        self.source = SOURCE_NONE
        self._messages = []
        self._ids = set()

    @property
    def messages(self):
        return list(self._messages)

    @property
    def ids(self):
        return set(self._ids)

    def __len__(self):
        return len(self._messages)

    def _append(self, message):
        msg_id = message.get('id')
        if msg_id is None or msg_id in self._ids:
            return False
        self._ids.add(msg_id)
        self._messages.append(message)
        return True

    def _replace(self, messages):
        self._messages = []
        self._ids = set()
        for m in messages or []:
            self._append(m)

    def load_page(self, messages):
        """Render a REST-fetched page; it is authoritative for this view.

        Live messages already rendered and missing from the page are kept at
        the end so nothing received in the meantime disappears.
        """
        live = [m for m in self._messages if m.get('id') not in {p.get('id') for p in messages or []}]
        self._replace(messages)
        for m in live:
            self._append(m)
        self.source = SOURCE_REST

    def apply_history(self, messages):
        # A history push only renders while no REST content is on screen
        if self.source == SOURCE_REST:
            logger.debug(f"[VIEW] Discarded history push for {self.group_id}: REST page already rendered")
            return False
        live = list(self._messages)
        self._replace(messages)
        for m in live:
            self._append(m)
        self.source = SOURCE_HISTORY
        return True

    def apply_new_message(self, message):
        # Messages for other groups (or direct messages) are not this view's
        if self.group_id is None or message.get('type', 'group') != 'group':
            return False
        if str(message_group_id(message)) != str(self.group_id):
            return False
        return self._append(message)
