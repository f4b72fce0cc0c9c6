"""Builders for inkscape shell action strings.

Each function returns one action token (``name`` or ``name:arg``); pass a
list of them to ``Proxy.send_command``.  Run ``inkscape --action-list`` for
the full catalogue of actions your inkscape build supports.
"""

from __future__ import annotations

import enum


class DpiMethod(str, enum.Enum):
    NONE = "none"
    SCALE_VIEWBOX = "scale-viewbox"
    SCALE_DOCUMENT = "scale-document"


class InvertOption(str, enum.Enum):
    ALL = "all"
    LAYERS = "layers"
    NO_LAYERS = "no-layers"
    GROUPS = "groups"
    NO_GROUPS = "no-groups"


def _action(name: str, *args: object) -> str:
    return ":".join([name, *(str(a) for a in args)])


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def file_open(file_path: str) -> str:
    return _action("file-open", file_path)


def file_new(template: str | None = None) -> str:
    return _action("file-new", template) if template else "file-new"


def file_close() -> str:
    return "file-close"


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_filename(file_path: str) -> str:
    return _action("export-filename", file_path)


def export_type(file_type: str) -> str:
    """``file_type`` is an extension such as ``pdf``, ``png`` or ``svg``."""
    return _action("export-type", file_type)


def export_do() -> str:
    return "export-do"


def export_area(x0: int, y0: int, x1: int, y1: int) -> str:
    return _action("export-area", x0, y0, x1, y1)


def export_area_page() -> str:
    return "export-area-page"


def export_area_drawing() -> str:
    return "export-area-drawing"


def export_dpi(dpi: int) -> str:
    return _action("export-dpi", dpi)


def export_width(width: int) -> str:
    return _action("export-width", width)


def export_height(height: int) -> str:
    return _action("export-height", height)


def export_pdf_version(version: str) -> str:
    return _action("export-pdf-version", version)


def export_plain_svg() -> str:
    return "export-plain-svg"


def export_text_to_path() -> str:
    return "export-text-to-path"


def export_overwrite() -> str:
    return "export-overwrite"


def convert_dpi_method(method: DpiMethod) -> str:
    return _action("convert-dpi-method", DpiMethod(method).value)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def select_all() -> str:
    return "select-all"


def select_by_class(class_name: str) -> str:
    return _action("select-by-class", class_name)


def select_by_element(element_name: str) -> str:
    return _action("select-by-element", element_name)


def select_by_id(element_id: str) -> str:
    return _action("select-by-id", element_id)


def select_by_css(query: str) -> str:
    return _action("select-by-selector", query)


def select_clear() -> str:
    return "select-clear"


def select_invert(option: InvertOption = InvertOption.NO_GROUPS) -> str:
    return _action("select-invert", InvertOption(option).value)


def select_list() -> str:
    return "select-list"


# ---------------------------------------------------------------------------
# Queries and object operations
# ---------------------------------------------------------------------------

def query_all() -> str:
    return "query-all"


def query_x() -> str:
    return "query-x"


def query_y() -> str:
    return "query-y"


def query_width() -> str:
    return "query-width"


def query_height() -> str:
    return "query-height"


def object_to_path() -> str:
    return "object-to-path"


def vacuum_defs() -> str:
    return "vacuum-defs"


def version() -> str:
    """Print the inkscape version (the shell exits afterwards)."""
    return "inkscape-version"


def quit_inkscape() -> str:
    return "quit-inkscape"
