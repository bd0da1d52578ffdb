"""Headless application bootstrap."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys

from PySide6.QtCore import QCoreApplication

from hymnal.config.settings import AppSettings
from hymnal.runtime_paths import is_frozen, package_root, theme_tables_path
from hymnal.session.manager import SessionManager
from hymnal.theme.models import ThemeTableError
from hymnal.theme.resolver import ThemeResolver
from hymnal.theme.service import ThemeService
from hymnal.usage.tracker import UsageTracker


def _configure_startup_logger(settings: AppSettings) -> logging.Logger:
    logger = logging.getLogger("hymnal.startup")
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = RotatingFileHandler(
        settings.log_dir / "startup.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def run_app(settings: AppSettings | None = None) -> int:
    """Bring up settings, theme, session and usage state, then exit."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    app.setApplicationName("Hymnal")
    app.setOrganizationName("Hymnal")
    settings = settings or AppSettings()
    logger = _configure_startup_logger(settings)
    logger.info("startup mode frozen=%s package_root=%s", is_frozen(), package_root())

    tables_path = theme_tables_path()
    if not tables_path.exists():
        logger.warning("theme tables missing at %s", tables_path)
    try:
        resolver = ThemeResolver()
    except ThemeTableError as exc:
        logger.error("theme tables invalid: %s", exc)
        return 1

    theme_service = ThemeService(settings, resolver)
    ok, message = theme_service.apply_startup_theme()
    if not ok:
        logger.warning(message)
    theme = theme_service.current_theme()

    store = settings.key_value_store()
    session_manager = SessionManager(store)
    session = session_manager.initialize()
    usage = UsageTracker(store)
    usage.initialize()
    totals = usage.get_today_usage()
    settings.sync()

    logger.info(
        "ready theme=%s/%s/%s role=%s trial=%s requests_today=%s",
        theme.color_key,
        theme.brightness,
        theme.extension.variant.name,
        session.user_role,
        session_manager.get_trial_info().remaining_label(),
        totals["totalRequests"],
    )
    return 0
