import re

PRIMARY_NAMESPACE = "license"
LICENSE_PREFIX = "license:"
LICENSE_IDENTIFIER_LENGTH = 48

VALID_IDENTIFIERS: dict[str, re.Pattern] = {
    "steam": re.compile(r"steam:1100001[0-9A-Fa-f]{8}"),
    "license": re.compile(r"license:[0-9A-Fa-f]{40}"),
    "xbl": re.compile(r"xbl:\d{14,20}"),
    "live": re.compile(r"live:\d{14,20}"),
    "discord": re.compile(r"discord:\d{7,20}"),
    "fivem": re.compile(r"fivem:\d{1,8}"),
}


def classify(identifier: object) -> str | None:
    if not isinstance(identifier, str):
        return None
    for namespace, pattern in VALID_IDENTIFIERS.items():
        if pattern.fullmatch(identifier):
            return namespace
    return None


def is_valid_identifier(identifier: object) -> bool:
    return classify(identifier) is not None


def filter_valid(identifiers: list) -> list[str]:
    return [identifier for identifier in identifiers if is_valid_identifier(identifier)]


def extract_license(identifiers: list) -> str | None:
    # Length/prefix match only, so the reserved debug license still resolves.
    for identifier in identifiers:
        if (
            isinstance(identifier, str)
            and len(identifier) == LICENSE_IDENTIFIER_LENGTH
            and identifier.startswith(LICENSE_PREFIX)
        ):
            return identifier[len(LICENSE_PREFIX):]
    return None


def find_primary_license(identifiers: list[str]) -> str | None:
    """Returns the bare license of the first validated primary identifier."""
    for identifier in identifiers:
        if classify(identifier) == PRIMARY_NAMESPACE:
            return identifier[len(LICENSE_PREFIX):]
    return None
