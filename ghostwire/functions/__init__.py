# Functions package

from ghostwire.functions.ids import new_id, utcnow, isoformat
from ghostwire.functions.tokens import Identity, issue_token, verify_token, token_from_request
from ghostwire.functions.validation import validate_send_message, validate_group, validate_registration

__all__ = [
    'new_id', 'utcnow', 'isoformat',
    'Identity', 'issue_token', 'verify_token', 'token_from_request',
    'validate_send_message', 'validate_group', 'validate_registration'
]
