"""
Command line entry point: ``landlord``.
"""

import argparse
import logging
import sys
from typing import List, Optional

from landlord.config import GameConfig, load_board_spec
from landlord.console import ConsolePrompter
from landlord.controller import GameController
from landlord.exceptions import LandlordError
from landlord.messages import MessageCatalog
from landlord.persistence import SaveStore
from landlord.settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play a property-trading board game in the terminal")
    parser.add_argument("--language", type=str, default=None, help="Language file name, e.g. English")
    parser.add_argument("--saves-dir", type=str, default=None, help="Directory of saved games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for new games")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (DEBUG, INFO, WARNING...)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        messages = MessageCatalog.load(args.language or settings.language, settings.languages_dir)
        board_file = str(settings.board_file) if settings.board_file is not None else None
        config = GameConfig(seed=args.seed, board_file=board_file)
        controller = GameController(
            ConsolePrompter(messages),
            messages,
            SaveStore(args.saves_dir or settings.saves_dir),
            config=config,
            autosave=settings.autosave,
            board_spec=load_board_spec(board_file),
        )
        controller.run()
    except LandlordError as exc:
        logger.error(str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print()
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
