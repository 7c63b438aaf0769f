"""Entry point: python -m pynano"""

from __future__ import annotations

import sys


def main() -> None:
    try:
        from pynano.web.launcher import main as serve
    except ImportError as exc:
        print(f"[pynano] The web server needs uvicorn and fastapi: {exc}", file=sys.stderr)
        sys.exit(1)
    serve()


if __name__ == "__main__":
    main()
