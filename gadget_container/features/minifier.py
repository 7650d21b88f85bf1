"""JavaScript minification for compiled feature bundles."""

from typing import Protocol

import rjsmin


class Minifier(Protocol):
    def minify(self, source: str) -> str:
        ...


class RJSMinMinifier:
    """Minifier backed by rjsmin; keeps /*! ... */ license comments."""

    def __init__(self, keep_bang_comments: bool = True) -> None:
        self.keep_bang_comments = keep_bang_comments

    def minify(self, source: str) -> str:
        return rjsmin.jsmin(source, keep_bang_comments=self.keep_bang_comments)
