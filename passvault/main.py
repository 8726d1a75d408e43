"""
Main entry point for PassVault.

Opens the vault file (creating it on first run), unlocks it and starts the
interactive menu. The vault is locked again after a period of inactivity.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import config
from .cli import VaultCli
from .exceptions import VaultInUseError
from .session import VaultSession
from .vault import VaultEngine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passvault",
        description=f"{config.APP_NAME}: a local credential store encrypted under a single master password.",
    )
    parser.add_argument(
        '--vault',
        default=None,
        help=f"Vault file path (default: ~/{config.CONFIG_DIR_NAME}/{config.DEFAULT_VAULT_FILE}, "
             f"or ${config.HOME_ENV_VAR}/{config.DEFAULT_VAULT_FILE})",
    )
    parser.add_argument(
        '--idle-timeout',
        type=int,
        default=config.IDLE_TIMEOUT_SECONDS,
        help=f"Seconds of inactivity before the vault locks, 0 disables (default: {config.IDLE_TIMEOUT_SECONDS})",
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help="Enable debug logging",
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {config.APP_VERSION}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    )

    vault_path = args.vault or config.get_default_vault_path()
    try:
        engine = VaultEngine(vault_path)
    except VaultInUseError as e:
        print(f"[-] {e}", file=sys.stderr)
        return 1

    session = VaultSession(engine, idle_timeout=args.idle_timeout)
    cli = VaultCli(session)
    session.on_lock = cli.on_idle_lock
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
