import base64

import pytest

from trctl.errors import ParseError
from trctl.magnet import is_magnet, parse_magnet


HEX = "c12fe1c06bba254a9dc9f519b335aa7c1367a88a"
BASE32 = base64.b32encode(bytes.fromhex(HEX)).decode()


def test_hex_hash_is_lowercased():
    magnet = parse_magnet(f"magnet:?xt=urn:btih:{HEX.upper()}&dn=Some+Name")
    assert magnet.info_hash == HEX
    assert magnet.name == "Some Name"


def test_base32_hash():
    magnet = parse_magnet(f"magnet:?xt=urn:btih:{BASE32}")
    assert magnet.info_hash == HEX
    assert magnet.name == "magnet"


def test_other_topics_skipped():
    url = f"magnet:?xt=urn:sha1:AAAA&xt=urn:btih:{HEX}&tr=udp://t.example:80"
    assert parse_magnet(url).info_hash == HEX


@pytest.mark.parametrize(
    "url",
    [
        "http://example.com/a.torrent",
        "magnet:?dn=nothing",
        "magnet:?xt=urn:sha1:AAAA",
        "magnet:?xt=urn:btih:1234",
        f"magnet:?xt=urn:btih:{'z' * 40}",
    ],
)
def test_invalid(url):
    with pytest.raises(ParseError):
        parse_magnet(url)


def test_is_magnet():
    assert is_magnet("MAGNET:?xt=urn:btih:abc")
    assert not is_magnet("https://example.com/a.torrent")
