"""Path pattern helpers: optional segment expansion and operation ids."""

import re

_OPTIONAL_PARAM = re.compile(r"/:\w+\?")
_PATH_PARAM = re.compile(r":([^/]+)")


def capitalize(word: str) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    return word[:1].upper() + word[1:]


def expand_optional_paths(path: str) -> list[str]:
    """Get all possible paths of a path with optional parameters.

    The full path (optional markers dropped) comes first, then for each optional
    segment in source order, the expansions of the path with that segment removed.
    Duplicates are kept.

    Example:
        >>> expand_optional_paths("/user/:user?/name/:name?")
        ['/user/:user/name/:name', '/user/name/:name', '/user/name', '/user/:user/name', '/user/name']
    """
    optional_params = _OPTIONAL_PARAM.findall(path)
    if not optional_params:
        return [path]

    paths = [path.replace("?", "")]
    for segment in optional_params:
        paths.extend(expand_optional_paths(path.replace(segment, "", 1)))
    return paths


def to_operation_id(method: str, path: str) -> str:
    """Synthesize an operation id such as `getUserByUserIdById`."""
    operation_id = method.lower()

    if not path or path == "/":
        return operation_id + "Index"

    for segment in path.split("/"):
        if ":" in segment:
            operation_id += "By" + capitalize(segment.replace(":", "", 1))
        else:
            operation_id += capitalize(segment)

    return operation_id.replace("?", "Optional")


def to_path_template(path: str) -> str:
    """Convert `:name` tokens to the `{name}` template convention."""
    return _PATH_PARAM.sub(r"{\1}", path)


def path_parameter_names(path: str) -> list[str]:
    """List path parameter names in order, without optional markers."""
    return [name.rstrip("?") for name in _PATH_PARAM.findall(path)]


def get_loose_path(path: str) -> str:
    """Toggle the trailing slash of a path."""
    if path.endswith("/"):
        return path[:-1]
    return path + "/"
