"""Headless daemon bootstrap: apply the active override and keep it current."""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import sys

from PySide6.QtGui import QGuiApplication

from usercolors.config.paths import StoragePaths, ensure_storage_dirs
from usercolors.config.store import ConfigStore
from usercolors.core.stylesheet import StylesheetApplier
from usercolors.runtime_paths import runtime_summary
from usercolors.workers.change_watcher import ChangeWatcher


def _configure_logger(paths: StoragePaths, *, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("usercolors")
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    paths.log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        paths.log_dir / "usercolors.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    if verbose:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))
        logger.addHandler(console)
    logger.propagate = False
    return logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="usercolors",
        description="Apply user color overrides to the toolkit stylesheet.",
    )
    parser.add_argument("--once", action="store_true", help="apply once and exit")
    parser.add_argument("--verbose", action="store_true", help="also log to stderr")
    return parser


def apply_once(store: ConfigStore) -> int:
    """Apply the current policy; returns a process exit code."""
    ok, message = StylesheetApplier(store).apply_and_report(store.load())
    print(message, file=sys.stdout if ok else sys.stderr)
    return 0 if ok else 1


def connect_reapply(watcher: ChangeWatcher, applier: StylesheetApplier) -> None:
    """Re-apply whenever the watcher reports a new palette or import scope."""
    logger = logging.getLogger("usercolors.app")

    def reapply() -> None:
        policy = watcher.current_policy
        if policy is None or watcher.current_palette is None:
            logger.info("no active override resolves; leaving stylesheets as they are")
            return
        ok, message = applier.apply_and_report(policy)
        if not ok:
            logger.warning("re-apply failed: %s", message.splitlines()[0])

    watcher.palette_changed.connect(lambda _palette: reapply())
    watcher.scope_changed.connect(lambda _wants_import: reapply())


def run_daemon(argv: list[str] | None = None) -> int:
    """Initialize and run the watcher loop."""
    args = _build_parser().parse_args(argv)
    paths = ensure_storage_dirs(StoragePaths.from_environment())
    logger = _configure_logger(paths, verbose=args.verbose)
    logger.info("startup %s", runtime_summary())

    store = ConfigStore(paths)
    if args.once:
        return apply_once(store)

    # First-run bootstrap happens here; the watcher itself never writes the config.
    store.load()
    app = QGuiApplication(sys.argv[:1])
    applier = StylesheetApplier(store)
    watcher = ChangeWatcher(store)

    def on_errored(message: str) -> None:
        logger.error("watcher errored: %s", message)
        app.exit(1)

    connect_reapply(watcher, applier)
    watcher.errored.connect(on_errored)
    watcher.connect_style_hints(app.styleHints())
    if not watcher.start():
        return 1

    if watcher.current_policy is not None:
        ok, message = applier.apply_and_report(watcher.current_policy)
        logger.info("initial apply: %s", message.splitlines()[0])

    exit_code = app.exec()
    watcher.stop()
    return exit_code
