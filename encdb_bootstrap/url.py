"""
Connection URL transcoding.

Rewrites plain MySQL JDBC URLs onto the EncDB scheme so that the
encryption-aware driver accepts them:

    jdbc:mysql://host:3306/db  ->  jdbc:mysql:encdb://host:3306/db

Every other URL is returned untouched.
"""
from typing import Optional

PLAIN_PREFIX = "jdbc:mysql://"
ENCRYPTED_PREFIX = "jdbc:mysql:encdb://"


def is_encrypted_url(url: Optional[str]) -> bool:
    """Return True if url already uses the EncDB scheme."""
    return bool(url) and url.startswith(ENCRYPTED_PREFIX)


def transcode(url: Optional[str]) -> Optional[str]:
    """Rewrite a connection URL into its EncDB form.

    Host, port, path and query are preserved exactly. Blank, already
    encrypted and unrecognized URLs, and non-string values, are returned
    unchanged, so ``transcode(transcode(url)) == transcode(url)``.

    Args:
        url: Original connection URL.

    Returns:
        The EncDB connection URL, or ``url`` itself.
    """
    if not isinstance(url, str) or not url.strip():
        return url
    if url.startswith(ENCRYPTED_PREFIX):
        return url
    if url.startswith(PLAIN_PREFIX):
        return ENCRYPTED_PREFIX + url[len(PLAIN_PREFIX):]
    return url
