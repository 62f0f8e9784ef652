"""Common literal values used across extension_docs.

Content types and caller-facing limits live here so the pipeline, stores, and
tests import the same values.

Examples
--------
>>> from extension_docs import _constants
>>> _constants.MAX_DESCRIPTION_LENGTH
128
>>> _constants.VERSION_FORMAT
'%Y-%m-%d-%H-%M'
"""

MAX_DESCRIPTION_LENGTH = 128
VERSION_FORMAT = "%Y-%m-%d-%H-%M"

JSON_CONTENT_TYPE = "application/json"
MARKDOWN_CONTENT_TYPE = "text/markdown"
PNG_CONTENT_TYPE = "image/png"
SCRIPT_CONTENT_TYPE = "text/javascript"

EXTENSIONS_URL_PREFIX = "/extensions"
