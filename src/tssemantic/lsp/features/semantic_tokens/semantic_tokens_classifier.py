"""Semantic token classification decoding."""

import logging
from typing import Iterator, Optional, Sequence, Tuple

import attrs

from .semantic_tokens_config import SemanticTokensConfig


logger = logging.getLogger(__name__)


def _validate_non_negative(instance, attribute, value):
    """Validator for non-negative integer values."""
    if value < 0:
        raise ValueError(f"Token {attribute.name} must be non-negative")


def _validate_positive(instance, attribute, value):
    """Validator for strictly positive integer values."""
    if value <= 0:
        raise ValueError(f"Token {attribute.name} must be positive")


@attrs.define(frozen=True)
class ResolvedSpan:
    """A classified span with its token type and modifiers resolved."""

    offset: int = attrs.field(validator=_validate_non_negative)
    length: int = attrs.field(validator=_validate_non_negative)
    token_type: int = attrs.field(validator=_validate_non_negative)
    token_modifiers: int = attrs.field(default=0, validator=_validate_non_negative)


@attrs.define(frozen=True)
class Token:
    """A semantic token confined to a single line."""

    line: int = attrs.field(validator=_validate_non_negative)
    start_char: int = attrs.field(validator=_validate_non_negative)
    length: int = attrs.field(validator=_validate_positive)
    token_type: int = attrs.field(validator=_validate_non_negative)
    token_modifiers: int = attrs.field(default=0, validator=_validate_non_negative)


def get_token_type_from_classification(classification: int) -> Optional[int]:
    """
    Get the token type packed into an enriched classification.

    Args:
        classification: Raw classification code from tsserver

    Returns:
        The token type index, or None if this is a plain base classification
    """
    if classification > SemanticTokensConfig.TOKEN_MODIFIER_MASK:
        return (classification >> SemanticTokensConfig.TOKEN_TYPE_OFFSET) - 1
    return None


def get_token_modifiers_from_classification(classification: int) -> int:
    """Get the modifier bitmask packed into an enriched classification."""
    return classification & SemanticTokensConfig.TOKEN_MODIFIER_MASK


class SpanDecoder:
    """Decodes flat classification arrays returned by tsserver."""

    def __init__(self, config: Optional[SemanticTokensConfig] = None):
        self._config = config or SemanticTokensConfig()

    def decode_classification(self, classification: int) -> Optional[Tuple[int, int]]:
        """
        Resolve a classification code to a token type and modifiers.

        Codes above 0xFF come from the classifier plugin and carry the token
        type and modifiers themselves. Smaller codes are base classifications,
        of which only a handful map to a token type.

        Args:
            classification: Raw classification code from tsserver

        Returns:
            (token_type, token_modifiers), or None if no token should be emitted
        """
        token_type = get_token_type_from_classification(classification)
        if token_type is not None:
            if token_type >= len(self._config.TOKEN_TYPES):
                logger.debug(f"Dropping classification {classification}: token type {token_type} is not in the legend")
                return None
            return token_type, get_token_modifiers_from_classification(classification)

        token_type = self._config.FALLBACK_TOKEN_TYPES.get(classification)
        if token_type is None:
            return None
        return token_type, 0

    def decode(self, spans: Sequence[int]) -> Iterator[ResolvedSpan]:
        """
        Decode (offset, length, classification) triplets in emission order.

        The scheme is detected for every span on its own, so a single
        response may mix enriched and base classifications.

        Args:
            spans: Flat span array from an encodedSemanticClassifications response

        Yields:
            One ResolvedSpan per triplet that carries a token
        """
        if len(spans) % 3 != 0:
            logger.warning(f"Span array length {len(spans)} is not a multiple of 3, ignoring trailing values")

        for i in range(0, len(spans) - 2, 3):
            offset, length, classification = spans[i], spans[i + 1], spans[i + 2]

            resolved = self.decode_classification(classification)
            if resolved is None:
                continue

            token_type, token_modifiers = resolved
            yield ResolvedSpan(
                offset=offset,
                length=length,
                token_type=token_type,
                token_modifiers=token_modifiers,
            )
