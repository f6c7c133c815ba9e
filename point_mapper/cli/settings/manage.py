import json
import logging
from gettext import gettext as _
from pathlib import Path

from point_mapper.core.errors import PersistenceError
from point_mapper.core.settings import (
    THEMES,
    JSONSettingsStore,
    apply_theme,
    default_settings_filename,
    export_settings,
    import_settings,
    load_settings,
    reset_settings,
    save_settings,
)

logger = logging.getLogger(__name__)


def handle(args):
    store = JSONSettingsStore(args.settings)
    settings = load_settings(store)

    if args.action == "show":
        print(json.dumps(dict(settings), indent=2, sort_keys=True))
        return 0

    if args.action == "export":
        path = Path(args.target) if args.target else Path(default_settings_filename())
        if path.is_dir():
            path = path / default_settings_filename()
        try:
            export_settings(settings, path)
        except PersistenceError as e:
            logger.error(str(e))
            return 1
        return 0

    if args.action == "import":
        if not args.target:
            logger.error(_("A settings file to import is required"))
            return 1
        try:
            settings = import_settings(settings, Path(args.target))
        except PersistenceError as e:
            logger.error(str(e))
            return 1
        if not save_settings(settings, store):
            return 1
        logger.info(_("Settings imported successfully!"))
        return 0

    if args.action == "theme":
        if not apply_theme(settings, args.target or ""):
            logger.error(
                _("Unknown theme {theme!r}, choose one of: {themes}").format(
                    theme=args.target, themes=", ".join(THEMES)
                )
            )
            return 1
        return 0 if save_settings(settings, store) else 1

    reset_settings(store)
    logger.info(_("Settings reset to defaults"))
    return 0
