"""Text codecs for calendars: ICS (RFC 5545) and JSON."""

from .ics import (
    ImportResult,
    export_to_ics,
    from_ics_string,
    import_from_ics,
    parse_ics,
    to_ics_string,
)
from .json import export_to_json, from_json, import_from_json, to_json

__all__ = [
    "ImportResult",
    "export_to_ics",
    "export_to_json",
    "from_ics_string",
    "from_json",
    "import_from_ics",
    "import_from_json",
    "parse_ics",
    "to_ics_string",
    "to_json",
]
