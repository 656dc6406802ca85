# Group models: groups and their memberships

from ghostwire.extensions import db
from ghostwire.functions.ids import new_id, utcnow, isoformat


class Group(db.Model):
    # Chat group with exactly one admin (its creator)
    __tablename__ = 'groups'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(200), nullable=False, default='')
    admin_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # Relationships
    admin = db.relationship('User', foreign_keys=[admin_id])
    members = db.relationship('GroupMember', backref='group', lazy=True, cascade='all, delete-orphan')

    def is_admin(self, user_id):
        return self.admin_id == user_id

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'adminId': self.admin_id,
            'createdAt': isoformat(self.created_at),
        }


class GroupMember(db.Model):
    # Group membership, unique per (group, user)
    __tablename__ = 'group_members'
    __table_args__ = (
        db.UniqueConstraint('group_id', 'user_id', name='uq_group_member'),
    )

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.String(36), db.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)
