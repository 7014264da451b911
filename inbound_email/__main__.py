"""Replay a saved SES event locally.

Usage::

    python -m inbound_email event.json

Settings are read from the environment exactly as in Lambda.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from .handler import handler


def main() -> None:
    if len(sys.argv) != 2:
        print("Usage: python -m inbound_email <event.json>", file=sys.stderr)
        sys.exit(1)

    event = json.loads(Path(sys.argv[1]).read_text(encoding="utf-8"))
    handler(event, None)


if __name__ == "__main__":
    main()
