"""
Qualitative Coding Workbench - Main Entry Point

Loads the configuration, sets up logging, restores the workspace snapshot
and prints each text document with its coded runs marked.
"""

import sys
from pathlib import Path

from src.annotation.resolver import CodedRun
from src.annotation.session import AnnotationSession
from src.annotation.snapshot import SnapshotError, get_snapshot_path, load_snapshot
from src.core.settings import SettingsError, load_settings
from src.observability.logger import get_logger


def main() -> int:
    """
    Main entry point for the workbench.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    settings_path = Path("config/settings.yaml")
    try:
        settings = load_settings(settings_path)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logger = get_logger(
        log_level=settings.observability.log_level,
        structured=settings.observability.structured_logging,
    )
    logger.info("Settings loaded successfully.")

    snapshot_path = get_snapshot_path(settings)
    try:
        store = load_snapshot(snapshot_path, palette=settings.annotation.palette)
    except SnapshotError as exc:
        logger.error(f"Could not restore workspace: {exc}")
        return 1

    session = AnnotationSession(store)
    logger.info(
        f"Workspace {snapshot_path}: {len(store.documents)} documents, "
        f"{len(store.codes)} codes, {len(store.quotes)} quotes."
    )

    codes = {code.id: code for code in store.codes}
    for document in store.documents:
        print(f"== {document.title} ({document.type})")
        for run in session.render(document.id):
            if isinstance(run, CodedRun):
                print(f"[{codes[run.code_id].name}: {run.text}]", end="")
            else:
                print(run.text, end="")
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
