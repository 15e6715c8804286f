#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Start the Artfolio review client on one student's works or on your favorites."""

__copyright__ = "Copyright (C) 2025 The Artfolio Developers"
__credits__ = "The Artfolio Developers"
__license__ = "AGPL-3.0-or-later"

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication, QStyleFactory

from artfolio import __version__
from artfolio.artfolio_exceptions import ArtfolioException
from artfolio.messenger import Messenger
from artfolio.records import Artifact, Viewer
from artfolio.client.playback import PlaybackSpeeds
from artfolio.client.playback_window import PlaybackWindow
from artfolio.client.settings import (
    apply_environment,
    configure_logging,
    read_settings,
    save_settings,
)


log = logging.getLogger("client")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Play back a student's works, or your favorites, oldest first."
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )
    parser.add_argument(
        "student",
        nargs="?",
        help="Id of the student whose works to show, not needed with --favorites.",
    )
    parser.add_argument(
        "--favorites",
        action="store_true",
        help="Show the works you saved to your favorites instead.",
    )
    parser.add_argument(
        "--task-box",
        metavar="ID",
        help="Only show works submitted to this task box.",
    )
    parser.add_argument(
        "-s",
        "--server",
        metavar="URL",
        help="""
            URL of the backend project.
            Also checks the environment variable ARTFOLIO_SERVER if omitted.
        """,
    )
    parser.add_argument(
        "--api-key",
        help="Also checks the environment variable ARTFOLIO_API_KEY.",
    )
    parser.add_argument(
        "--token",
        help="""
            A user access token.
            Also checks the environment variable ARTFOLIO_TOKEN.
        """,
    )
    parser.add_argument(
        "-u",
        "--user",
        help="""
            Your user id, defaults to the student.
            Also checks the environment variable ARTFOLIO_USER.
        """,
    )
    parser.add_argument(
        "--role",
        choices=("student", "teacher"),
        default="student",
        help="Teachers may annotate any work.  Default: %(default)s.",
    )
    parser.add_argument(
        "--speed",
        type=int,
        choices=PlaybackSpeeds,
        help="Initial playback speed, otherwise from the config file.",
    )
    return parser


def fetch_works(
    msgr: Messenger, args: argparse.Namespace, user: str
) -> list[Artifact]:
    """The works to play: a student's, or the favorites of the user."""
    if args.favorites:
        favorites = msgr.list_favorites(user)
        log.info("%s has %d favorites", user, len(favorites))
        return msgr.get_artifacts([f.work_id for f in favorites])
    return msgr.list_artifacts(args.student, args.task_box)


def main(args=None):
    parser = get_parser()
    args = parser.parse_args(args)
    if not args.student and not args.favorites:
        parser.error("which student? (or use --favorites)")

    settings = apply_environment(read_settings())
    # command line wins over environment and config file
    for key in ("server", "api_key", "token", "user"):
        value = getattr(args, key)
        if value:
            settings[key] = value
    configure_logging(settings)

    user = settings.get("user") or args.student
    if not user:
        parser.error("--favorites needs to know who you are: use --user")
    viewer = Viewer(user_id=user, role=args.role)
    speed = args.speed or settings.get("PlaybackSpeed", 1)
    if speed not in PlaybackSpeeds:
        log.warning("Ignoring unexpected playback speed %s", speed)
        speed = PlaybackSpeeds[0]

    try:
        msgr = Messenger(
            settings.get("server"),
            api_key=settings.get("api_key", ""),
            token=settings.get("token"),
        )
        msgr.start()
        works = fetch_works(msgr, args, user)
    except ArtfolioException as e:
        print(f"Could not fetch works: {e}", file=sys.stderr)
        sys.exit(1)
    log.info("Fetched %d works", len(works))

    app = QApplication(sys.argv)
    app.setStyle(QStyleFactory.create("Fusion"))
    app.setApplicationName("ArtfolioClient")
    app.setApplicationVersion(__version__)

    # graceful exit on control-c
    signal.signal(signal.SIGINT, lambda *_: QApplication.exit(42))
    # a small timer lets the interpreter see the signal
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(1000)

    # images download on their own session, as they are the slow calls
    image_msgr = Messenger.clone(msgr)
    window = PlaybackWindow(
        None,
        msgr,
        viewer,
        image_msgr=image_msgr,
        speed=speed,
        annotation_color=settings.get("AnnotationColor", "#FF4444"),
    )
    window.set_works(works)
    window.show()
    r = app.exec()

    settings["PlaybackSpeed"] = window.controller.speed
    settings["AnnotationColor"] = window.annotation_color
    save_settings(settings)
    window.runner.wait_for_done(5000)
    image_msgr.stop()
    msgr.stop()
    sys.exit(r)


if __name__ == "__main__":
    main()
