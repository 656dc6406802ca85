#!/usr/bin/env python3

# Create a group for an existing user, optionally with extra members.
# Usage:
#   python3 tools/create_group.py admin@example.com "Group name" [member@example.com ...]
# The admin's group limit applies exactly as it does through the API.

import os
import sys

# Ensure project root is on sys.path so `ghostwire` can be imported when running
# this script from the `tools/` directory or elsewhere.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ghostwire import create_app  # noqa: E402
from ghostwire.errors import ChatError  # noqa: E402
from ghostwire.functions import groups, users  # noqa: E402


def main(argv):
    admin_email = argv[1] if len(argv) > 1 else 'admin@example.com'
    group_name = argv[2] if len(argv) > 2 else 'Test Group from Script'
    member_emails = argv[3:]

    app = create_app({'SOCKETIO_ASYNC_MODE': 'threading'})
    with app.app_context():
        print(f"Finding admin by email: {admin_email}")
        admin = users.find_by_email(admin_email)
        if not admin:
            print("Admin user not found. Create a user with that email first.")
            return 1

        member_ids = []
        for email in member_emails:
            member = users.find_by_email(email)
            if member:
                member_ids.append(member.id)
            else:
                print(f"  ! no user with email {email}, skipped")

        try:
            group = groups.create_group(admin.id, group_name, '', member_ids=member_ids)
        except ChatError as e:
            print(f"Failed to create group: {e.message}")
            return 1

        print(f"Group created: {group.id} ({group.name}) with {len(member_ids) + 1} members")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
