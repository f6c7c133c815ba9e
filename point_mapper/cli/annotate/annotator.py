import logging
from gettext import gettext as _

from point_mapper.core.errors import PointMapperError
from point_mapper.core.points import PointMappingSession
from point_mapper.core.points.utils import fit_display_size
from point_mapper.core.settings import JSONSettingsStore, load_settings
from point_mapper.interfaces.gui_adapter import GUIPointMappingAdapter, terminal_confirm
from point_mapper.interfaces.image_io import image_size, load_image, resize_for_display

logger = logging.getLogger(__name__)

USAGE = _(
    """Left click: add point (or select) | Drag: move selection or box select
Right click: point menu | Tab: next prefix | f: next filter | p: new prefix
d: duplicate | e: rename | Delete: delete | Ctrl+Z/Ctrl+Y: undo/redo
Ctrl+A: select all | s/Ctrl+S: export CSV | Esc: deselect | q: quit"""
)


def handle(args):
    settings = load_settings(JSONSettingsStore(args.settings))
    session = PointMappingSession(settings, confirm=terminal_confirm)

    for raw in args.prefixes:
        try:
            session.add_prefix(raw)
        except PointMapperError as e:
            logger.warning(_("Skipping prefix {prefix!r}: {error}").format(prefix=raw, error=e))

    try:
        image = load_image(args.image)
    except PointMapperError as e:
        logger.error(str(e))
        return 1

    original_size = image_size(image)
    display_size = fit_display_size(original_size, (args.max_width, args.max_height))
    session.load_image(original_size, display_size, image_path=str(args.image))
    logger.info(
        _("Loaded {path} ({ow}x{oh}, shown as {dw}x{dh})").format(
            path=args.image,
            ow=original_size[0],
            oh=original_size[1],
            dw=display_size[0],
            dh=display_size[1],
        )
    )
    print(USAGE)

    adapter = GUIPointMappingAdapter(
        session,
        resize_for_display(image, display_size),
        output=args.output,
        window_name=args.image.name,
    )
    adapter.run()
    session.close()
    return 0
