"""Tests for connection URL transcoding."""
import pytest

from encdb_bootstrap.url import transcode, is_encrypted_url


class TestTranscode:
    """Tests for transcode()."""

    def test_plain_mysql_url(self):
        assert transcode("jdbc:mysql://host:3306/db") == "jdbc:mysql:encdb://host:3306/db"

    def test_encrypted_url_unchanged(self):
        assert transcode("jdbc:mysql:encdb://host/db") == "jdbc:mysql:encdb://host/db"

    def test_other_scheme_unchanged(self):
        assert transcode("jdbc:postgresql://host/db") == "jdbc:postgresql://host/db"

    def test_empty_unchanged(self):
        assert transcode("") == ""

    def test_blank_unchanged(self):
        assert transcode("   ") == "   "

    def test_none_unchanged(self):
        assert transcode(None) is None

    @pytest.mark.parametrize("value", [1234, b"jdbc:mysql://h/db", ["x"]])
    def test_non_string_unchanged(self, value):
        assert transcode(value) is value

    def test_query_string_preserved(self):
        url = "jdbc:mysql://h1:3306,h2:3307/db?useSSL=false&characterEncoding=utf8"
        assert transcode(url) == (
            "jdbc:mysql:encdb://h1:3306,h2:3307/db?useSSL=false&characterEncoding=utf8"
        )

    @pytest.mark.parametrize("url", [
        "jdbc:mysql://host:3306/db",
        "jdbc:mysql:encdb://host/db",
        "jdbc:postgresql://host/db",
        "mysql://host/db",
        "",
    ])
    def test_idempotent(self, url):
        assert transcode(transcode(url)) == transcode(url)


class TestIsEncryptedUrl:

    def test_encrypted(self):
        assert is_encrypted_url("jdbc:mysql:encdb://host/db") is True

    def test_plain(self):
        assert is_encrypted_url("jdbc:mysql://host/db") is False

    def test_empty(self):
        assert is_encrypted_url("") is False
        assert is_encrypted_url(None) is False
