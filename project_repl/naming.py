"""
Identifier mangling for loaded modules and files.

Every loaded item is stored in a flat namespace, so each specifier or file
path is turned into a plain identifier:

    identifier_for_module_name("left-pad")        -> "leftPad"
    identifier_for_module_name("@scope/pkg-name") -> "pkgName"
    identifier_for_file_path("lib/foo-bar.py")    -> "lib_fooBar"

No attempt is made to avoid collisions between two inputs that mangle to the
same identifier; the last write into the namespace wins.
"""

import re

SOURCE_SUFFIX = ".py"

_SEPARATORS = re.compile(r"[/\\]+")


def identifier_for_module_name(name: str) -> str:
    """Camel-case a module specifier, keeping only the segment after the last '/'."""
    ident = ""
    cap_next = False
    for c in name:
        if c == "-":
            cap_next = True
        elif c == ".":
            continue
        elif c == "/":
            ident = ""
            cap_next = False
        else:
            ident += c.upper() if cap_next else c
            cap_next = False
    return ident


def strip_source_suffix(path: str) -> str:
    """Drop the trailing source suffix, if present."""
    if path.endswith(SOURCE_SUFFIX):
        return path[: -len(SOURCE_SUFFIX)]
    return path


def identifier_for_file_path(path: str) -> str:
    """
    Mangle a root-relative file path into an identifier.

    Each directory segment is mangled on its own and the results are joined
    with '_', so files with the same basename in different directories get
    different identifiers.
    """
    segments = [s for s in _SEPARATORS.split(strip_source_suffix(path)) if s]
    return "_".join(identifier_for_module_name(s) for s in segments)
