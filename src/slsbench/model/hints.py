"""Closed vocabulary of semantic hints and the vendor extensions that carry them."""

HINT_EXTENSION = "x-user-hint"
UNIQUE_EXTENSION = "x-slsbench-unique"

NAME_HINTS = ["firstName", "lastName", "fullName", "name"]
INTERNET_HINTS = [
    "email", "username", "password", "url", "uri",
    "domainName", "hostname", "ip", "ipv4", "ipv6",
]
ADDRESS_HINTS = ["city", "state", "country"]
STRING_HINTS = ["word", "string"]
DATE_HINTS = ["date", "timestamp", "dateTime", "iso8601"]
DATATYPE_HINTS = [
    "uuid", "number", "integer", "int", "float",
    "double", "boolean", "byte", "binary",
]
ID_HINTS = ["id"]

HINT_OPTIONS: list[str] = (
    NAME_HINTS
    + INTERNET_HINTS
    + ADDRESS_HINTS
    + STRING_HINTS
    + DATE_HINTS
    + DATATYPE_HINTS
    + ID_HINTS
)
