"DbIndex: Web tool to inspect and rename indexes in SQLite3 databases."

import os.path
import re

__version__ = "1.0.0"


class Constants:
    VERSION = __version__
    ROOT = os.path.dirname(os.path.abspath(__file__))

    BOOTSTRAP_CSS_URL = (
        "https://cdn.jsdelivr.net/npm/bootstrap@4.6.2/dist/css/bootstrap.min.css"
    )
    BOOTSTRAP_CSS_INTEGRITY = (
        "sha384-xOolHFLEh07PJGoPkLv1IbcEPTNtaed2xpHsD9ESMhqIYd0nLMwNLD69Npy4HI+N"
    )

    NAME_RX = re.compile(r"^[a-z][a-z0-9_-]*$", re.I)

    # Index kinds.
    PRIMARY = "PRIMARY"
    UNIQUE = "UNIQUE"
    INDEX = "INDEX"
    FULLTEXT = "FULLTEXT"
    SPATIAL = "SPATIAL"
    INDEX_KINDS = (PRIMARY, UNIQUE, INDEX, FULLTEXT, SPATIAL)

    # Index origins, as reported by SQLite3 'PRAGMA index_list'.
    ORIGIN_CREATED = "c"
    ORIGIN_UNIQUE = "u"
    ORIGIN_PRIMARYKEY = "pk"

    # Index edit modes.
    DISPLAY_FORM = "display_form"
    PREVIEW = "preview"
    SAVE = "save"

    # Database file extension.
    DBFILE_EXT = ".sqlite3"

    # JSON schema.
    JSON_SCHEMA_URL = "http://json-schema.org/draft-07/schema#"

    # MIME types.
    HTML_MIMETYPE = "text/html"
    JSON_MIMETYPE = "application/json"

    def __setattr__(self, key, value):
        raise ValueError("cannot set constant")


constants = Constants()
