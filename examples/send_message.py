"""Sample script: post a message to a conversation and print its history

Credentials come from .layerkit.yml or LAYER_APP_ID / LAYER_TOKEN.
"""

import sys

from layerkit import AggregatedFailure, LayerClient, Message
from layerkit.cli import setup_logging
from layerkit.infrastructure.config.config_manager import ConfigManager


def main(conversation_id: str, text: str) -> int:
    setup_logging()
    client = LayerClient.from_config(ConfigManager())

    try:
        client.send_message(Message.text(text, name="layerkit"), conversation_id)
    except AggregatedFailure as e:
        print(f"Giving up after {e.attempts} attempts:\n{e}", file=sys.stderr)
        return 1

    for message in client.iter_messages(conversation_id, page_size=50):
        body = message.parts[0].body if message.parts else ""
        print(f"{message.sent_at} {message.sender.user_id or message.sender.name}: {body}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1], " ".join(sys.argv[2:]) or "Hello from layerkit"))
