from routedoc.paths import (
    capitalize,
    expand_optional_paths,
    get_loose_path,
    path_parameter_names,
    to_operation_id,
    to_path_template,
)


def test_expand_optional_paths_without_optional_segments() -> None:
    """Test a path without optional segments expands to itself only."""
    assert expand_optional_paths("/user/:user/name/:name") == ["/user/:user/name/:name"]


def test_expand_optional_paths_single_optional_segment() -> None:
    """Test one optional segment yields the full path, then the path without it."""
    assert expand_optional_paths("/user/:id?") == ["/user/:id", "/user"]


def test_expand_optional_paths_two_optional_segments() -> None:
    """Test removal recurses per optional segment, keeping duplicates in order."""
    assert expand_optional_paths("/user/:user?/name/:name?") == [
        "/user/:user/name/:name",
        "/user/name/:name",
        "/user/name",
        "/user/:user/name",
        "/user/name",
    ]


def test_expand_optional_paths_bounds() -> None:
    """Test distinct expansions stay within 2^k and reach the fully stripped path."""
    path = "/a/:b?/c/:d?/e/:f?"
    expanded = expand_optional_paths(path)

    assert 1 <= len(set(expanded)) <= 2**3
    assert expanded[0] == "/a/:b/c/:d/e/:f"
    assert "/a/c/e" in expanded
    assert all("?" not in p for p in expanded)


def test_to_operation_id_root() -> None:
    """Test the root path maps to an Index suffix."""
    assert to_operation_id("GET", "/") == "getIndex"
    assert to_operation_id("post", "") == "postIndex"


def test_to_operation_id_segments_and_params() -> None:
    """Test segments are capitalized and parameters rendered as By<Name>."""
    assert to_operation_id("get", "/user/:id") == "getUserById"
    assert to_operation_id("PUT", "/user/:userId/posts") == "putUserByUserIdPosts"


def test_to_operation_id_optional_marker() -> None:
    """Test leftover optional markers become the Optional token."""
    assert to_operation_id("get", "/user/:id?") == "getUserByIdOptional"


def test_to_path_template() -> None:
    """Test path parameter tokens use the brace template convention."""
    assert to_path_template("/user/:id/name/:name") == "/user/{id}/name/{name}"
    assert to_path_template("/static") == "/static"


def test_path_parameter_names() -> None:
    """Test parameter names are listed in order without optional markers."""
    assert path_parameter_names("/a/:b?/c/:d") == ["b", "d"]
    assert path_parameter_names("/plain") == []


def test_get_loose_path() -> None:
    """Test the trailing slash is toggled."""
    assert get_loose_path("/users") == "/users/"
    assert get_loose_path("/users/") == "/users"


def test_capitalize_keeps_rest_of_word() -> None:
    """Test only the first character changes."""
    assert capitalize("userId") == "UserId"
    assert capitalize("") == ""
