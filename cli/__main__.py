"""Entry point for lexadapt CLI client."""

import argparse
import sys

from cli.api_client import LexadaptAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='lexadapt - adaptive vocabulary practice')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--user',
        default='default',
        help='User ID (default: default)'
    )
    parser.add_argument(
        '--language',
        default=None,
        help="Practice language, e.g. german or de (default: the server's default language)"
    )
    args = parser.parse_args()

    client = LexadaptAPIClient(base_url=args.server, user_id=args.user, language=args.language)
    ui = ConsoleUI(client)

    try:
        ui.run()
    except KeyboardInterrupt:
        ui.finish()
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
