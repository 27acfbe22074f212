"""Configuration for semantic tokens functionality."""

import enum
import functools
from typing import Dict, List

from lsprotocol import types


class ClassificationType(enum.IntEnum):
    """Base classifications returned by tsserver when no plugin enriches them."""

    comment = 1
    identifier = 2
    keyword = 3
    numericLiteral = 4
    operator = 5
    stringLiteral = 6
    regularExpressionLiteral = 7
    whiteSpace = 8
    text = 9
    punctuation = 10
    className = 11
    enumName = 12
    interfaceName = 13
    moduleName = 14
    typeParameterName = 15
    typeAliasName = 16
    parameterName = 17
    docCommentTagName = 18
    jsxOpenTagName = 19
    jsxCloseTagName = 20
    jsxSelfClosingTagName = 21
    jsxAttribute = 22
    jsxText = 23
    jsxAttributeStringLiteralValue = 24
    bigintLiteral = 25


class TokenModifier(enum.IntFlag):
    """Token modifiers, bit positions matching TOKEN_MODIFIERS."""

    declaration = 1 << 0
    static = 1 << 1
    async_ = 1 << 2
    readonly = 1 << 3


class SemanticTokensConfig:
    """Configuration class for semantic token types and mappings."""

    # 12 token types. Index i is encoded by the classifier plugin as (i + 1) << 8,
    # so this order must not change.
    TOKEN_TYPES: List[str] = [
        "class",
        "enum",
        "interface",
        "namespace",
        "typeParameter",
        "type",
        "parameter",
        "variable",
        "property",
        "constant",
        "function",
        "member",
    ]

    # 4 token modifiers, one bit each in the low 8 bits of an enriched classification.
    TOKEN_MODIFIERS: List[str] = [
        "declaration",
        "static",
        "async",
        "readonly",
    ]

    TOKEN_TYPE_INDICES: Dict[str, int] = {name: i for i, name in enumerate(TOKEN_TYPES)}

    # Enriched classification = (tokenType + 1) << TOKEN_TYPE_OFFSET | tokenModifiers.
    # Anything at or below TOKEN_MODIFIER_MASK (0xFF) is a plain ClassificationType.
    TOKEN_TYPE_OFFSET = 8
    TOKEN_MODIFIER_MASK = (1 << TOKEN_TYPE_OFFSET) - 1

    # Only these base classifications carry a semantic token; all others are dropped.
    FALLBACK_TOKEN_TYPES: Dict[int, int] = {
        ClassificationType.className: TOKEN_TYPE_INDICES["class"],
        ClassificationType.enumName: TOKEN_TYPE_INDICES["enum"],
        ClassificationType.interfaceName: TOKEN_TYPE_INDICES["interface"],
        ClassificationType.moduleName: TOKEN_TYPE_INDICES["namespace"],
        ClassificationType.typeParameterName: TOKEN_TYPE_INDICES["typeParameter"],
        ClassificationType.typeAliasName: TOKEN_TYPE_INDICES["type"],
        ClassificationType.parameterName: TOKEN_TYPE_INDICES["parameter"],
    }

    CLASSIFICATIONS_COMMAND = "encodedSemanticClassifications-full"

    # encodedSemanticClassifications-full first shipped with TypeScript 3.7
    MIN_TYPESCRIPT_VERSION = "3.7.0"


@functools.lru_cache(maxsize=None)
def build_legend() -> types.SemanticTokensLegend:
    """Build the legend advertised to the client.

    The lists are copied so callers cannot mutate the class constants.
    """
    return types.SemanticTokensLegend(
        token_types=list(SemanticTokensConfig.TOKEN_TYPES),
        token_modifiers=list(SemanticTokensConfig.TOKEN_MODIFIERS),
    )
