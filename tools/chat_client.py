#!/usr/bin/env python3

# Interactive command-line chat client.
# Usage:
#   python3 tools/chat_client.py --email me@example.com --password secret123 --group <group id>
# Lines typed on stdin are sent to the group; `/dm <user id> <text>` sends a direct message.

import argparse
import os
import sys
import uuid

import requests
import socketio

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ghostwire.client import MessageView  # noqa: E402


def login(server, email, password):
    res = requests.post(f"{server}/api/auth/login", json={'email': email, 'password': password}, timeout=10)
    if res.status_code != 200:
        raise SystemExit(f"Login failed: {res.json().get('error', res.status_code)}")
    return res.json()['token']


def fetch_page(server, token, group_id):
    res = requests.get(
        f"{server}/api/groups/{group_id}/messages",
        headers={'Authorization': f"Bearer {token}"},
        timeout=10
    )
    if res.status_code != 200:
        print(f"! could not fetch messages: {res.status_code}")
        return None
    return res.json().get('messages', [])


def show(message):
    print(f"[{message.get('createdAt')}] {message.get('username')}: {message.get('content')}")


def main():
    parser = argparse.ArgumentParser(description='GhostWire command-line client')
    parser.add_argument('--server', default='http://localhost:3000')
    parser.add_argument('--email', required=True)
    parser.add_argument('--password', required=True)
    parser.add_argument('--group', help='group id to open')
    args = parser.parse_args()

    token = login(args.server, args.email, args.password)
    view = MessageView(args.group)
    sio = socketio.Client(reconnection_attempts=5, reconnection_delay=1)

    @sio.event
    def connect():
        print(f"Connected as {sio.sid}")
        if view.group_id:
            # Re-join on every (re)connect; history and the page are reconciled by id
            sio.emit('join_group', view.group_id)
            page = fetch_page(args.server, token, view.group_id)
            if page is not None:
                view.load_page(page)
                for m in view.messages:
                    show(m)

    @sio.event
    def connect_error(data):
        print(f"Connect error: {data}")

    @sio.event
    def disconnect(*reason):
        print('Disconnected')

    @sio.on('history')
    def on_history(messages):
        if view.apply_history(messages):
            for m in view.messages:
                show(m)

    @sio.on('new_message')
    def on_new_message(message):
        if view.apply_new_message(message) or message.get('type') == 'private':
            show(message)

    @sio.on('error')
    def on_error(data):
        print(f"! {data.get('message') if isinstance(data, dict) else data}")

    sio.connect(
        args.server,
        auth={'token': token},
        headers={'Cookie': f"token={token}"},
        transports=['websocket', 'polling']
    )

    try:
        for line in sys.stdin:
            line = line.strip()
            if not line:
                continue
            if line.startswith('/dm '):
                _, target, *words = line.split(' ')
                payload = {'targetId': target, 'type': 'private', 'content': ' '.join(words)}
            elif view.group_id:
                payload = {'targetId': view.group_id, 'type': 'group', 'content': line}
            else:
                print('! no group open; use --group or /dm')
                continue
            payload['clientId'] = uuid.uuid4().hex
            sio.emit('send_message', payload)
    except KeyboardInterrupt:
        pass
    finally:
        sio.disconnect()


if __name__ == '__main__':
    main()
