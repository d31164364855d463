"""
Identifier normalization for SQL Schema to Code generator.

Pure naming functions shared by every stage of the pipeline. Entity names
derived from table names must come from here so that every generated layer
agrees on them.
"""

import re

# Matches an uppercase letter that is not the first character
_UPPER_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_PLURAL_ES_SUFFIXES = ("s", "x", "z", "ch", "sh")

GO_RESERVED_WORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
}


def to_target_case(identifier: str) -> str:
    """Convert a snake_case schema identifier to Go-style PascalCase.

    A whole "id" segment becomes the acronym "ID".

    Examples:
        "user_id" -> "UserID"
        "created_at" -> "CreatedAt"
        "USERS" -> "Users"
        "id" -> "ID"
        "idx_value" -> "IdxValue"

    Args:
        identifier: The schema-case identifier

    Returns:
        PascalCase identifier
    """
    segments = identifier.lower().split("_")
    converted = []
    for segment in segments:
        if not segment:
            continue
        if segment == "id":
            converted.append("ID")
        else:
            converted.append(segment[0].upper() + segment[1:])
    return "".join(converted)


def to_source_case(identifier: str) -> str:
    """Convert PascalCase/camelCase back to snake_case.

    Not an exact inverse of to_target_case: "UserID" -> "user_i_d".
    """
    return _UPPER_BOUNDARY.sub("_", identifier).lower()


def singularize(name: str) -> str:
    """Strip one trailing "s" from a (conventionally plural) table name.

    Heuristic only: "status" becomes "statu". Names ending in "ss" are left
    unchanged so that applying it twice gives the same result.
    """
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def pluralize(name: str) -> str:
    """Append "es" after sibilant endings, "s" otherwise."""
    if name.lower().endswith(_PLURAL_ES_SUFFIXES):
        return f"{name}es"
    return f"{name}s"


def sanitize_identifier(name: str) -> str:
    """Suffix Go reserved words with an underscore."""
    if name in GO_RESERVED_WORDS:
        return f"{name}_"
    return name
