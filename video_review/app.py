# video_review/app.py
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import click
from PyQt5.QtWidgets import QApplication, QMessageBox

from . import __version__
from .persistence import CONFIG_FILENAME, build_record_store, resolve_config

logger = logging.getLogger(__name__)


def run_app(
    config_path: Optional[str] = None,
    project_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> int:
    from .main_window import ReviewWindow

    app = QApplication(sys.argv)

    cfg = resolve_config(config_path, user_id)
    try:
        records = build_record_store(cfg)
    except ValueError as e:
        logger.error("cannot start: %s", e)
        QMessageBox.critical(None, "Configuration error", str(e))
        return 2

    base_dir = os.path.dirname(os.path.abspath(config_path)) if config_path else os.getcwd()
    win = ReviewWindow(records, cfg=cfg, base_dir=base_dir)
    win.show()

    # Without a project on the command line, offer the picker once
    if project_id:
        win.open_project_by_id(project_id)
    else:
        win.open_project_dialog()

    return app.exec_()


@click.command()
@click.version_option(version=__version__, prog_name="video-review")
@click.option(
    "--config",
    "config_path",
    default=CONFIG_FILENAME,
    show_default=True,
    help="Path to the configuration file.",
    envvar="VIDEO_REVIEW_CONFIG",
)
@click.option("--project", "project_id", default=None, help="Open this project id on start.")
@click.option(
    "--user-id",
    "user_id",
    default=None,
    help="Review as this editor. Without it (and without user_id in the config) you review as a client.",
    envvar="VIDEO_REVIEW_USER",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def main(config_path: str, project_id: Optional[str], user_id: Optional[str], verbose: bool):
    """Timestamped video feedback between an editor and a client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(run_app(config_path=config_path, project_id=project_id, user_id=user_id))
