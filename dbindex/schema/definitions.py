"JSON schema definitions components."

link = {
    "title": "A link to an object.",
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "href": {"type": "string", "format": "uri"},
    },
    "required": ["href"],
    "additionalProperties": False,
}

column = {
    "title": "A column of an index; the name is null for an expression.",
    "type": "object",
    "properties": {
        "name": {"type": ["string", "null"]},
        "descending": {"type": "boolean"},
        "collation": {"type": ["string", "null"]},
    },
    "required": ["name", "descending"],
    "additionalProperties": False,
}
