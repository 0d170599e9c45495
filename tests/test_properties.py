"""
Catalog file parsing.
"""

import pytest

from prometheus_config.config import load_config
from prometheus_config.properties import load_properties, parse_properties


def test_parse_properties_skips_comments_and_blanks() -> None:
    text = """
# connector
! legacy comment
connector.name=prometheus
prometheus.uri = http://prom:9090
prometheus.http.additional-headers=X-A:1,X-B:2
prometheus.cache.ttl: 1m
"""
    assert parse_properties(text) == {
        "connector.name": "prometheus",
        "prometheus.uri": "http://prom:9090",
        "prometheus.http.additional-headers": "X-A:1,X-B:2",
        "prometheus.cache.ttl": "1m",
    }


def test_parse_properties_later_keys_win() -> None:
    assert parse_properties("a=1\na=2") == {"a": "2"}


def test_parse_properties_whitespace_separator_and_bare_keys() -> None:
    assert parse_properties("a=1\nkey value with spaces\nbare") == {
        "a": "1",
        "key": "value with spaces",
        "bare": "",
    }


def test_parse_properties_resolves_escapes() -> None:
    text = "\\=odd\\:key = tab\\there\nsnowman=\\u2603\nplain=\\q\n"

    assert parse_properties(text) == {"=odd:key": "tab\there", "snowman": "\u2603", "plain": "q"}


def test_parse_properties_joins_continuation_lines() -> None:
    text = "prometheus.query.functions=rate,\\\n    sum,\\\n    avg\nnext=1\n"

    assert parse_properties(text) == {"prometheus.query.functions": "rate,sum,avg", "next": "1"}


def test_parse_properties_even_backslashes_do_not_continue() -> None:
    assert parse_properties("a=x\\\\\nb=y") == {"a": "x\\", "b": "y"}


def test_parse_properties_rejects_malformed_unicode_escape() -> None:
    with pytest.raises(ValueError, match="Malformed"):
        parse_properties("a=\\u12")


def test_load_properties_reads_file(write_catalog) -> None:
    path = write_catalog("prometheus.read-timeout=20s\n")

    assert load_properties(path) == {"prometheus.read-timeout": "20s"}


def test_escaped_header_value_from_file(write_catalog) -> None:
    """
    A header name holding a literal comma is written with a doubled backslash in the
    file; the properties layer takes one away and the header parser the other.
    """
    path = write_catalog("prometheus.http.additional-headers=a\\\\,b:c\n")

    properties = load_properties(path)
    assert properties == {"prometheus.http.additional-headers": "a\\,b:c"}
    assert dict(load_config(properties).additional_headers) == {"a,b": "c"}
