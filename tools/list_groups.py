#!/usr/bin/env python3

# Print every group with its admin and members.
# Usage:
#   python3 tools/list_groups.py

import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ghostwire import create_app  # noqa: E402
from ghostwire.models import Group  # noqa: E402


def main():
    app = create_app({'SOCKETIO_ASYNC_MODE': 'threading'})
    with app.app_context():
        all_groups = Group.query.order_by(Group.created_at).all()
        if not all_groups:
            print("No groups found.")
            return
        for group in all_groups:
            admin = group.admin.username if group.admin else group.admin_id
            print(f"{group.id}  {group.name}  (admin: {admin}, {len(group.members)} members)")
            for m in group.members:
                print(f"    - {m.user.username} <{m.user.email}>")


if __name__ == '__main__':
    main()
