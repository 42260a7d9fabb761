"""Path helpers for locating SPL sources and naming compiled output."""

import os


def expand_path(path):
    """Replace a leading ``$VAR`` component of ``path`` with its environment value.

    The first character of the first component is taken as the marker and
    skipped; if the remaining name is not set, the component is kept as is.
    """
    head, sep, rest = path.partition("/")
    name = head[1:]
    value = os.environ.get(name) if name else None
    if value is None:
        value = head
    return f"{value}{sep}{rest}" if sep else value


def remove_extension(pathname):
    """Strip the extension, keeping the final dot; no dot yields an empty string."""
    return pathname[: pathname.rfind(".") + 1]


def output_filename(input_name):
    """Return the name of the ``.xsm`` file compiled from ``input_name``."""
    return remove_extension(input_name) + "xsm"