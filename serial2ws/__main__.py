"""Entry point: parse config and run the serial-to-WebSocket bridge with graceful shutdown."""

import sys

from serial2ws.config import parse_args
from serial2ws.bridge import run_bridge


def main():
    try:
        args = parse_args()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    try:
        run_bridge(
            port=args.port,
            baud=args.baud,
            listen=args.listen,
            ws_port=args.ws_port,
            http_port=args.http_port,
            retry_delay=args.retry_delay,
            static_dir=args.static_dir,
            verbose=args.verbose,
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
