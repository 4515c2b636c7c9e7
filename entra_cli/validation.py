"""Input validation for directory lookups."""

import re

from .exceptions import ValidationError

_GUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

SELECTOR_OPTIONS = ("appId", "appObjectId", "appDisplayName")


def is_valid_guid(value) -> bool:
    """Return True if *value* is a GUID in canonical 8-4-4-4-12 form."""
    if not isinstance(value, str):
        return False
    return _GUID_RE.fullmatch(value) is not None


def validate_selector(selector) -> None:
    """Check that exactly one application identifier is given and well-formed.

    Raises ValidationError otherwise. Never touches the network.
    """
    given = selector.given_options()
    options = ", ".join(SELECTOR_OPTIONS)

    if not given:
        raise ValidationError(f"Specify one of the following options: {options}.")
    if len(given) > 1:
        raise ValidationError(
            f"Specify one of the following options: {options}, but not multiple."
        )

    if selector.app_id is not None and not is_valid_guid(selector.app_id):
        raise ValidationError(f"{selector.app_id} is not a valid GUID")
    if selector.app_object_id is not None and not is_valid_guid(selector.app_object_id):
        raise ValidationError(f"{selector.app_object_id} is not a valid GUID")
