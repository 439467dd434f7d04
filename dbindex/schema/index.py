"Index JSON schemas: the submitted index form data, and the API output."

from dbindex import constants
from dbindex.schema import definitions


# A resubmitted index form; only the name is taken from it.
input = {
    "$schema": constants.JSON_SCHEMA_URL,
    "title": "Index form data.",
    "type": "object",
    "properties": {
        "Key_name": {"type": "string"},
        "Index_choice": {"type": "string", "enum": list(constants.INDEX_KINDS)},
    },
    "required": ["Key_name"],
}

index = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "table": {"type": "string"},
        "kind": {"type": "string", "enum": list(constants.INDEX_KINDS)},
        "columns": {"type": "array", "items": {"$ref": "#/definitions/column"}},
        "origin": {"type": "string", "enum": ["c", "u", "pk"]},
        "where": {"type": ["string", "null"]},
        "duplicate": {"type": "boolean"},
    },
    "required": ["name", "kind", "columns", "duplicate"],
    "additionalProperties": False,
}

indexes = {
    "$id": "/indexes",
    "$schema": constants.JSON_SCHEMA_URL,
    "title": "Table indexes API JSON schema.",
    "definitions": {"link": definitions.link, "column": definitions.column},
    "type": "object",
    "properties": {
        "$id": {"type": "string", "format": "uri"},
        "timestamp": {"type": "string", "format": "date-time"},
        "database": {"type": "string"},
        "table": {"$ref": "#/definitions/link"},
        "indexes": {"type": "array", "items": index},
        "duplicates": {
            "title": "Pairs of indexes that seem to be equal.",
            "type": "array",
            "items": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 2,
                "maxItems": 2,
            },
        },
    },
    "required": ["$id", "timestamp", "database", "table", "indexes", "duplicates"],
    "additionalProperties": False,
}
