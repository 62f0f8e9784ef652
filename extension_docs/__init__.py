"""Publish extension documentation trees to the extensions site.

This package renders an author's outline into markdown documents, uploads
them with the extension's thumbnail and script bundle, keeps the extension
record and optional paid tier in step, and triggers the site rebuild.

Exports
-------
- ``app``: Cyclopts application behind the ``docs`` console script.
- ``main``: Convenience function that invokes the app.

Examples
--------
>>> from extension_docs import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
