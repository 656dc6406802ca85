# Message model

from ghostwire.extensions import db
from ghostwire.functions.ids import new_id, utcnow


class Message(db.Model):
    # One row per message; either a group message or a direct message
    __tablename__ = 'messages'
    __table_args__ = (
        db.CheckConstraint(
            "(group_id IS NOT NULL AND recipient_id IS NULL AND type = 'group') OR "
            "(group_id IS NULL AND recipient_id IS NOT NULL AND type = 'private')",
            name='ck_message_target'
        ),
        db.UniqueConstraint('sender_id', 'client_id', name='uq_message_client_id'),
        db.Index('ix_messages_group_created', 'group_id', 'created_at'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sender_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey('groups.id'), nullable=True)
    recipient_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    type = db.Column(db.String(10), nullable=False)
    content = db.Column(db.Text, nullable=False)
    # Optional key a client sends so a retried send_message is not stored twice
    client_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # Relationships
    sender = db.relationship('User', foreign_keys=[sender_id])

    @property
    def target_id(self):
        return self.group_id if self.type == 'group' else self.recipient_id
