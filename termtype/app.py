"""Application entry point for the termtype typing test."""

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional

from termtype.core.clock import SessionClock
from termtype.core.errors import TermTypeError
from termtype.core.session import QUIT_KEYS, EventSource, TypingLoop
from termtype.core.settings import Settings, load_settings
from termtype.core.words import WordSource, load_word_list
from termtype.ui.terminal import CursesEvents, terminal_session
from termtype.ui.typing_widgets import TerminalDisplay, summary_lines

logger = logging.getLogger(__name__)

RESTART_KEYS = frozenset({"\n", "\r"})


def configure_logging(log_file: Optional[Path] = None, verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format.

    curses owns the screen while a round runs, so without a log file only
    warnings and errors reach stderr.
    """
    if log_file is not None:
        logging.basicConfig(
            filename=str(log_file),
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termtype",
        description="Measure typing speed and accuracy in the terminal.",
    )
    parser.add_argument("-d", "--duration", type=float, help="round length in seconds (default 30)")
    parser.add_argument("--dict", type=Path, help="word list, one word per line (default ./dict.txt)")
    parser.add_argument("-w", "--words", type=_positive_int, help="end the round after this many words")
    parser.add_argument("--seed", type=int, help="seed for reproducible word sequences")
    parser.add_argument("-c", "--config", type=Path, help="YAML settings file")
    parser.add_argument("--log-file", type=Path, help="write log records to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    return parser


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def resolve_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config) if args.config is not None else Settings()
    return settings.merged(
        duration=args.duration,
        word_list=args.dict,
        word_limit=args.words,
        seed=args.seed,
    )


def play(source: WordSource, settings: Settings) -> Optional[TypingLoop]:
    """Run rounds in the terminal until the user quits; return the last finished round."""
    last: Optional[TypingLoop] = None
    with terminal_session() as term:
        display = TerminalDisplay(term.screen, colors=term.colors)
        events = CursesEvents(term.screen)
        while True:
            loop = TypingLoop(
                source,
                SessionClock(settings.duration),
                display=display,
                word_limit=settings.word_limit,
                preview=settings.preview,
            )
            if loop.run(events, tick=settings.tick_ms / 1000.0) is None:
                return last
            last = loop
            if not wait_for_restart(events, settings.tick_ms / 1000.0):
                return last


def wait_for_restart(events: EventSource, tick: float) -> bool:
    """Block on the result screen: True on Enter, False on a quit key."""
    while True:
        key = events.poll(tick)
        if key in RESTART_KEYS:
            return True
        if key in QUIT_KEYS:
            return False


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.verbose)
    try:
        settings = resolve_settings(args)
        # reject a bad duration before the terminal is taken over
        SessionClock(settings.duration)
        words = load_word_list(settings.resolve_word_list())
        source = WordSource(words, random.Random(settings.seed))
        logger.info("Drawing prompts from %d words", len(source))
        finished = play(source, settings)
    except TermTypeError as e:
        logger.info("Exiting on error: %s", e)
        print(f"termtype: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    if finished is not None:
        print("\n".join(summary_lines(finished.result, finished.completed)))
    return 0


def run() -> None:
    sys.exit(main())
