import pytest

from trctl.lib import GIB, is_rooted_under, parse_size


@pytest.mark.parametrize(
    "value, expected",
    [
        (1024, 1024),
        ("1024", 1024),
        ("100GiB", 100 * GIB),
        ("40 GB", 40 * 1000**3),
        ("512mib", 512 * 1024**2),
        ("1.5k", 1500),
    ],
)
def test_parse_size(value, expected):
    assert parse_size(value) == expected


@pytest.mark.parametrize("value", [-1, True, "lots", "10 parsecs", ""])
def test_parse_size_invalid(value):
    with pytest.raises(ValueError):
        parse_size(value)


def test_is_rooted_under():
    assert is_rooted_under("/a/b/c", ["/x", "/a/b"])
    assert is_rooted_under("/a/b", ["/a/b/"])
    assert not is_rooted_under("/a/bc", ["/a/b"])
    assert not is_rooted_under("/a/b", [])
