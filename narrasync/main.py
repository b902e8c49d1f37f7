import argparse
import json
import os
import sys

from .config import SyncConfig
from .epub_parser import Ingestor
from .errors import NarrasyncError
from .models import END_OF_BOOK
from .session import NavigationStatus, ReaderSession
from .utils import get_logger, seconds_to_hms, setup_logging

logger = get_logger("Main")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_END_OF_BOOK = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="narrasync",
        description="Audio/text sync and clip extraction for narrated EPUB 3 books")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Show title, author and chapter count")
    info.add_argument("epub", help="Path to the EPUB file")

    chapters = sub.add_parser("chapters", help="List spine entries with their sync data")
    chapters.add_argument("epub", help="Path to the EPUB file")

    for name, help_text in (
        ("timeline", "Dump a chapter's sync timeline as JSON"),
        ("active", "Print the element narrated at a given time"),
        ("clip", "Print a text clip around a given time"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("epub", help="Path to the EPUB file")
        cmd.add_argument("--chapter", "-c", type=int, default=1,
                         help="Chapter number, starting at 1 (default: 1)")
        if name != "timeline":
            cmd.add_argument("--at", type=float, required=True, help="Playback time in seconds")
        if name == "clip":
            cmd.add_argument("--half-width", type=float, default=None,
                             help="Seconds of context on each side (default: 15)")
    return parser


def cmd_info(args, config: SyncConfig) -> int:
    ingestor = Ingestor()
    metadata = ingestor.read_metadata(args.epub)
    print(f"Title:    {metadata['title']}")
    print(f"Author:   {metadata['author']}")
    print(f"Chapters: {ingestor.spine_length(args.epub)}")
    return EXIT_OK


def cmd_chapters(args, config: SyncConfig) -> int:
    ingestor = Ingestor()
    print(f"{'#':<5} | {'ID':<20} | {'INTERVALS':<9} | {'SPAN':<19} | AUDIO")
    print("-" * 70)

    index = 0
    while True:
        chapter = ingestor.produce(args.epub, index)
        if chapter is END_OF_BOOK:
            break
        if chapter.timeline:
            first = min(i.start for i in chapter.timeline)
            last = max(i.end for i in chapter.timeline)
            span = f"{seconds_to_hms(int(first))}-{seconds_to_hms(int(last))}"
        else:
            span = "-"
        audio = "yes" if chapter.has_audio else "no"
        print(f"{index + 1:<5} | {chapter.id[:20]:<20} | {len(chapter.timeline):<9} | {span:<19} | {audio}")
        index += 1
    return EXIT_OK


def _open_chapter(args, config: SyncConfig):
    if args.chapter < 1:
        logger.error("Chapter numbers start at 1.")
        return None, EXIT_FAILURE

    session = ReaderSession(args.epub, config=config)
    result = session.open(args.chapter - 1)
    if result.status == NavigationStatus.END_OF_BOOK:
        logger.error(f"Chapter {args.chapter} is past the end of the book.")
        return None, EXIT_END_OF_BOOK
    if result.status != NavigationStatus.LOADED:
        logger.error(f"Could not load chapter {args.chapter}: {result.error}")
        return None, EXIT_FAILURE
    return session, EXIT_OK


def cmd_timeline(args, config: SyncConfig) -> int:
    from .output_manager import timeline_to_records

    session, code = _open_chapter(args, config)
    if session is None:
        return code
    print(json.dumps(timeline_to_records(session.chapter.timeline), indent=4))
    return EXIT_OK


def cmd_active(args, config: SyncConfig) -> int:
    session, code = _open_chapter(args, config)
    if session is None:
        return code
    print(session.active_element_id(args.at) or "-")
    return EXIT_OK


def cmd_clip(args, config: SyncConfig) -> int:
    if args.half_width is not None:
        config = SyncConfig(half_width=args.half_width, log_level=config.log_level)
    session, code = _open_chapter(args, config)
    if session is None:
        return code
    highlight = session.clip(args.at)
    print(highlight.rendered_text)
    return EXIT_OK


COMMANDS = {
    "info": cmd_info,
    "chapters": cmd_chapters,
    "timeline": cmd_timeline,
    "active": cmd_active,
    "clip": cmd_clip,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SyncConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging("DEBUG" if args.verbose else config.log_level)

    if not os.path.exists(args.epub):
        logger.error(f"EPUB file not found: {args.epub}")
        return EXIT_FAILURE

    try:
        return COMMANDS[args.command](args, config)
    except NarrasyncError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except ValueError as e:
        logger.error(f"Invalid argument: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
