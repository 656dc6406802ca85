# User-related models

from flask_login import UserMixin
from ghostwire.extensions import db
from ghostwire.functions.ids import new_id, utcnow, isoformat


class User(UserMixin, db.Model):
    # Registered identity; password_hash never leaves this class
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(20), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Profile info
    avatar_url = db.Column(db.String(300), nullable=True)
    color = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    memberships = db.relationship('GroupMember', backref='user', lazy=True)

    def to_public(self):
        # Shape used in search results and member lists
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'avatarUrl': self.avatar_url,
            'color': self.color,
        }

    def to_profile(self, online=False):
        profile = self.to_public()
        profile['online'] = online
        profile['joinedAt'] = isoformat(self.created_at)
        return profile

    def __repr__(self):
        return f"<User {self.id} {self.username}>"
