# Models package
# Import all models here for convenience

from ghostwire.models.user import User
from ghostwire.models.group import Group, GroupMember
from ghostwire.models.message import Message

__all__ = ['User', 'Group', 'GroupMember', 'Message']
