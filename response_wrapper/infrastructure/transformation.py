"""
Payload transformers: field selection and sensitive data masking.

Both transformers work on the JSON-compatible form of the payload
(as produced by ``jsonable_encoder``), so they apply equally to
pydantic models, dataclasses, mappings and lists. They run before
pagination detection; on a paginated payload, field selection only
touches the items.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder

from response_wrapper.application.pagination import resolve_member_names
from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.ports import ResponseTransformer

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, bytes, int, float, bool, type(None))

FieldTree = dict[str, "FieldTree"]


def parse_fields(raw: str) -> FieldTree:
    """Parse ``"id,name,address.city"`` into a nested selection tree.

    Args:
        raw: Comma-separated field paths; dots select nested members.

    Returns:
        Lower-cased field names mapped to their nested selections.
        An empty nested selection keeps the whole member.
    """
    tree: FieldTree = {}
    for path in raw.split(","):
        node = tree
        for part in (segment.strip().lower() for segment in path.split(".")):
            if not part:
                break
            node = node.setdefault(part, {})
    return tree


def select_fields(value: Any, tree: FieldTree) -> Any:
    """Keep only the selected members of every mapping in ``value``."""
    if not tree:
        return value
    if isinstance(value, list):
        return [select_fields(item, tree) for item in value]
    if isinstance(value, dict):
        return {
            key: select_fields(member, tree[key.lower()])
            for key, member in value.items()
            if key.lower() in tree
        }
    return value


class FieldSelectionTransformer(ResponseTransformer):
    """Projects the payload onto the fields named in a query parameter.

    ``GET /users?fields=id,name`` returns only ``id`` and ``name`` of
    each user. Without the parameter the payload is left alone.

    Args:
        parameter_name: Query parameter holding the field list.
    """

    def __init__(self, parameter_name: str = "fields") -> None:
        self.parameter_name = parameter_name

    def can_transform(self, payload_type: type) -> bool:
        return not issubclass(payload_type, SCALAR_TYPES)

    def transform(self, payload: Any, context: RequestContext) -> Any:
        raw = context.query_param(self.parameter_name)
        if not raw or not raw.strip():
            return payload

        tree = parse_fields(raw)
        logger.debug(
            "Selecting fields %s for request %s", sorted(tree), context.request_id
        )
        encoded = jsonable_encoder(payload)

        if isinstance(encoded, dict):
            members = resolve_member_names(encoded.keys())
            if members is not None:
                items_key = members["items"]
                return {
                    **encoded,
                    items_key: select_fields(encoded[items_key], tree),
                }
        return select_fields(encoded, tree)


DEFAULT_SENSITIVE_KEYS = (
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "ssn",
    "credit_card",
    "card_number",
    "cvv",
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CARD_PATTERN = re.compile(r"^\d{13,19}$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
MIN_PHONE_DIGITS = 7


def _normalize_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


class DataMaskingTransformer(ResponseTransformer):
    """Masks sensitive values anywhere in the payload.

    Values under a sensitive key are masked completely. String values
    that look like e-mail addresses or card numbers (and, when
    enabled, phone numbers) are masked partially, keeping enough to
    be recognizable.

    Args:
        sensitive_keys: Keys whose values are always fully masked;
            compared ignoring case, underscores and dashes.
        mask_char: Character used for masking.
        mask_emails: Mask e-mail addresses.
        mask_cards: Mask card numbers, keeping the last four digits.
        mask_phones: Mask phone numbers, keeping the last four digits.
    """

    def __init__(
        self,
        sensitive_keys: Iterable[str] = DEFAULT_SENSITIVE_KEYS,
        mask_char: str = "*",
        *,
        mask_emails: bool = True,
        mask_cards: bool = True,
        mask_phones: bool = False,
    ) -> None:
        self.sensitive_keys = frozenset(_normalize_key(key) for key in sensitive_keys)
        self.mask_char = mask_char
        self.mask_emails = mask_emails
        self.mask_cards = mask_cards
        self.mask_phones = mask_phones

    def can_transform(self, payload_type: type) -> bool:
        return not issubclass(payload_type, SCALAR_TYPES)

    def transform(self, payload: Any, context: RequestContext) -> Any:
        return self._mask(jsonable_encoder(payload))

    def _mask(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._mask(item) for item in value]
        if isinstance(value, Mapping):
            return {
                key: self._mask_member(str(key), member) for key, member in value.items()
            }
        if isinstance(value, str):
            return self.mask_string(value)
        return value

    def _mask_member(self, key: str, value: Any) -> Any:
        if _normalize_key(key) in self.sensitive_keys and value is not None:
            return self.mask_full(str(value))
        return self._mask(value)

    def mask_string(self, value: str) -> str:
        """Mask a string value if it matches a known sensitive pattern."""
        if self.mask_emails and EMAIL_PATTERN.match(value):
            return self.mask_email(value)
        compact = value.replace("-", "").replace(" ", "")
        if self.mask_cards and CARD_PATTERN.match(compact):
            return self.mask_card(value)
        if (
            self.mask_phones
            and PHONE_PATTERN.match(value)
            and sum(char.isdigit() for char in value) >= MIN_PHONE_DIGITS
        ):
            return self.mask_phone(value)
        return value

    def mask_full(self, value: str) -> str:
        return self.mask_char * len(value)

    def mask_email(self, email: str) -> str:
        """``john.doe@example.com`` becomes ``j******e@e******.com``."""
        local, _, domain = email.partition("@")
        if len(local) > 2:
            masked_local = local[0] + self.mask_char * (len(local) - 2) + local[-1]
        else:
            masked_local = self.mask_full(local)

        labels = domain.split(".")
        if len(labels) > 1 and labels[0]:
            first = labels[0]
            masked_domain = f"{first[0]}{self.mask_char * (len(first) - 1)}.{labels[-1]}"
        else:
            masked_domain = self.mask_full(domain)
        return f"{masked_local}@{masked_domain}"

    def mask_card(self, card: str) -> str:
        """Keep the last four digits; dashed 16-digit numbers keep their groups."""
        masked = self._keep_last_four(card)
        if "-" in card and len(masked) == 16:
            return "-".join(masked[index:index + 4] for index in range(0, 16, 4))
        return masked

    def mask_phone(self, phone: str) -> str:
        masked = self._keep_last_four(phone)
        if "-" in phone and len(masked) > 10:
            return f"{masked[:3]}-{masked[3:6]}-{masked[6:]}"
        return masked

    def _keep_last_four(self, value: str) -> str:
        digits = "".join(char for char in value if char.isdigit())
        if len(digits) < 4:
            return self.mask_full(value)
        return self.mask_char * (len(digits) - 4) + digits[-4:]
