"""
xpost

This is the main entry point for the xpost application.
It opens a terminal composer that publishes text and image posts to X,
keeps local drafts, and offers a stats view of recent posts.
"""

import argparse
import curses
import logging
import os
import sys

from config import settings
from config.validators import load_credentials
from data.drafts import DraftStore
from services.image_service import ImageService
from services.post_pipeline import PostPipeline
from services.twitter_service import TwitterService
from ui.renderer import CursesScreen, run_compose, run_stats
from ui.session import Session
from ui.stats import StatsSession, load_stats
from utils.exceptions import ConfigurationError, SocialMediaError
from utils.logger import get_logger, setup_file_logging

logger = get_logger(__name__)

# Seconds to wait for an in-flight post when the user exits.
SHUTDOWN_GRACE_SECONDS = 5


class XPostApp:
    """
    Main application class for xpost.

    Wires the API gateway, the posting pipeline, draft storage and the
    curses screens together.
    """

    def __init__(self, twitter_service: TwitterService):
        self.twitter_service = twitter_service

    def compose(self) -> None:
        """Run the compose UI until the user exits."""
        pipeline = PostPipeline(self.twitter_service)
        pipeline.start()
        session = Session(submit=pipeline.submit, images=ImageService(), drafts=DraftStore())
        try:
            curses.wrapper(lambda stdscr: run_compose(CursesScreen(stdscr), session,
                                                      pipeline.poll_outcome))
        finally:
            pipeline.stop(timeout=SHUTDOWN_GRACE_SECONDS)

    def stats(self, limit: int = settings.STATS_FETCH_LIMIT) -> None:
        """Run the stats UI until the user exits."""
        stats = StatsSession(
            fetch_replies=lambda post_id: self.twitter_service.get_post_replies(
                post_id, settings.REPLIES_FETCH_LIMIT)
        )

        def _run(stdscr):
            screen = CursesScreen(stdscr)
            screen.draw_stats(stats)
            load_stats(self.twitter_service, stats, limit)
            run_stats(screen, stats)

        curses.wrapper(_run)

    def verify(self) -> bool:
        """Check the credentials against the API and print the account."""
        try:
            user = self.twitter_service.get_current_user()
        except SocialMediaError as e:
            logger.error(f"Credential check failed: {e}")
            print(f"Credential check failed: {e}", file=sys.stderr)
            return False
        logger.info(f"Authenticated as @{user.username} ({user.id})")
        print(f"Authenticated as @{user.username} ({user.id})")
        return True


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Compose and publish posts to X from the terminal')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--stats', action='store_true', help='Show recent posts and their metrics')
    mode.add_argument('--verify', action='store_true', help='Check the configured credentials and exit')
    parser.add_argument('--limit', type=int, default=settings.STATS_FETCH_LIMIT,
                        help='Number of recent posts shown by --stats')
    parser.add_argument('--log-file', type=str, default=str(settings.LOG_FILE), help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    parser.add_argument('--verbose', action='store_true',
                        help='Also log to the console (ignored by the interactive screens)')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the application."""
    args = parse_arguments(argv)

    interactive = not args.verify
    log_level = getattr(logging, args.log_level)
    try:
        setup_file_logging(args.log_file, log_level, console=args.verbose and not interactive)
    except OSError as e:
        print(f"Cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return 1

    logger.info("Starting xpost")
    logger.debug(f"Configuration: {settings.get_config_summary()}")

    # Configuration problems are fatal before any screen is drawn.
    try:
        credentials = load_credentials()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(e, file=sys.stderr)
        return 1

    # Keep the Esc key responsive.
    os.environ.setdefault("ESCDELAY", "25")

    try:
        app = XPostApp(TwitterService(credentials))
        if args.verify:
            exit_code = 0 if app.verify() else 1
        elif args.stats:
            app.stats(limit=args.limit)
            exit_code = 0
        else:
            app.compose()
            exit_code = 0
    except KeyboardInterrupt:
        logger.info("Interrupted")
        exit_code = 0
    except Exception as e:
        logger.error(f"Unhandled exception in xpost: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 2

    logger.info(f"xpost finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
