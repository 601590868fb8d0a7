"""File path to URL route mapping."""

import os

from markrealm.constants import strip_markup_extension


def derive_route(file_path, root_dir) -> str:
    """Map a markup file under *root_dir* to its canonical URL route.

    ``index`` files stand for their directory: ``index.md`` is ``/`` and
    ``guide/index.md`` is ``/guide``. Routes never carry the file extension
    or a trailing slash (except ``/`` itself).
    """
    relative_path = os.path.relpath(os.fspath(file_path), os.fspath(root_dir))
    without_ext = strip_markup_extension(relative_path).replace(os.sep, "/")

    directory, _, name = without_ext.rpartition("/")
    if name == "index":
        return f"/{directory}" if directory else "/"
    return f"/{without_ext}"
