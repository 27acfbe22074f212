"""LSP semantic tokens feature for tssemantic."""

from .semantic_tokens import register_semantic_tokens, SemanticTokensService
from .document_handler import DocumentEventHandler
from .semantic_tokens_config import (
    ClassificationType,
    SemanticTokensConfig,
    TokenModifier,
    build_legend,
)
from .semantic_tokens_classifier import ResolvedSpan, SpanDecoder, Token
from .position_calculator import PositionCalculator
from .request_planner import RequestPlanner
from .staleness_guard import StalenessGuard

__all__ = [
    "register_semantic_tokens",
    "SemanticTokensService",
    "DocumentEventHandler",
    "ClassificationType",
    "SemanticTokensConfig",
    "TokenModifier",
    "build_legend",
    "ResolvedSpan",
    "SpanDecoder",
    "Token",
    "PositionCalculator",
    "RequestPlanner",
    "StalenessGuard",
]
