# Input validation for socket payloads and REST bodies
# Each validator returns an error message, or None when the input is valid.

import re

MESSAGE_TYPES = ('group', 'private')

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

MESSAGE_MAX_LENGTH = 1000
CLIENT_ID_MAX_LENGTH = 64


def validate_send_message(payload, max_length=MESSAGE_MAX_LENGTH):
    if not isinstance(payload, dict):
        return "Invalid message payload."

    target_id = payload.get('targetId')
    if not target_id or not isinstance(target_id, str):
        return "Target ID is required."

    content = payload.get('content')
    if not isinstance(content, str) or not content.strip():
        return "Message content cannot be empty."

    if len(content) > max_length:
        return f"Message content cannot exceed {max_length} characters."

    if payload.get('type') not in MESSAGE_TYPES:
        return "Invalid message type. Must be 'private' or 'group'."

    client_id = payload.get('clientId')
    if client_id is not None:
        if not isinstance(client_id, str) or not client_id or len(client_id) > CLIENT_ID_MAX_LENGTH:
            return "Invalid client message id."

    return None


def validate_group(name, description):
    if not isinstance(name, str) or not name.strip():
        return "Group name cannot be empty."
    if len(name) < 3 or len(name) > 50:
        return "Group name must be between 3 and 50 characters."
    if description is not None and not isinstance(description, str):
        return "Description must be text."
    if description and len(description) > 200:
        return "Description too long."
    return None


def validate_username(username):
    if not isinstance(username, str) or len(username) < 3 or len(username) > 20:
        return "Username must be between 3 and 20 characters."
    return None


def validate_registration(username, email, password):
    error = validate_username(username)
    if error:
        return error
    if not isinstance(email, str) or not EMAIL_RE.match(email):
        return "Invalid email address."
    if not isinstance(password, str) or len(password) < 8:
        return "Password must be at least 8 characters."
    return None


def validate_login(email, password):
    if not email:
        return "Email is required."
    if not password:
        return "Password is required."
    return None
