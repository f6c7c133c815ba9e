from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Show, export, import or reset the stored settings")


def command(subparser):
    subparser.add_argument(
        "action", choices=["show", "export", "import", "reset", "theme"]
    )
    subparser.add_argument(
        "target",
        nargs="?",
        default=None,
        help=_("File for export/import, preset name for theme"),
    )
    subparser.add_argument(
        "--settings",
        dest="settings",
        type=Path,
        default=None,
        help=_("Settings file (default: ~/.config/point_mapper/settings.json)"),
    )

    def handle(args):
        from .manage import handle as manage_handle

        return manage_handle(args)

    return handle
