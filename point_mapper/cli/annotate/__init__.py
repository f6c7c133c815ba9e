from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Interactively place labeled points on an image")


def command(subparser):
    subparser.add_argument("image", type=Path)
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        default=None,
        help=_("CSV file or directory to export to (default: image_points_<date>.csv)"),
    )
    subparser.add_argument(
        "-p",
        "--prefixes",
        dest="prefixes",
        type=str,
        nargs="+",
        default=[],
        help=_("Label prefixes to register, e.g. LOC PT"),
    )
    subparser.add_argument("--max-width", dest="max_width", type=int, default=1280)
    subparser.add_argument("--max-height", dest="max_height", type=int, default=800)
    subparser.add_argument(
        "--settings",
        dest="settings",
        type=Path,
        default=None,
        help=_("Settings file (default: ~/.config/point_mapper/settings.json)"),
    )

    def handle(args):
        from .annotator import handle as annotator_handle

        return annotator_handle(args)

    return handle
