"""Position calculation utilities for semantic tokens."""

from typing import Iterable, Iterator, List

from .semantic_tokens_classifier import ResolvedSpan, Token
from tssemantic.lsp.utils.text_document import DocumentTextModel


class PositionCalculator:
    """Splits spans into per-line tokens and encodes them for LSP."""

    def split_span(self, span: ResolvedSpan, document: DocumentTextModel) -> Iterator[Token]:
        """
        Split a span into one token per line it touches.

        The first line starts at the span's start character and every later
        line at character 0; the last line ends at the span's end character
        and every earlier line at its own length. Empty runs are skipped.

        Args:
            span: Resolved span in absolute document offsets
            document: Text model of the document the span was computed for

        Yields:
            Tokens in line order, none crossing a line boundary
        """
        start = document.position_at(span.offset)
        end = document.position_at(span.offset + span.length)

        for line in range(start.line, end.line + 1):
            start_char = start.character if line == start.line else 0
            end_char = end.character if line == end.line else document.line_length(line)
            if end_char <= start_char:
                continue

            yield Token(
                line=line,
                start_char=start_char,
                length=end_char - start_char,
                token_type=span.token_type,
                token_modifiers=span.token_modifiers,
            )

    def split_spans(self, spans: Iterable[ResolvedSpan], document: DocumentTextModel) -> List[Token]:
        """Split every span, preserving span order."""
        tokens: List[Token] = []
        for span in spans:
            tokens.extend(self.split_span(span, document))
        return tokens

    def order_tokens(self, tokens: Iterable[Token]) -> List[Token]:
        """
        Sort tokens by (line, start_char) and drop exact duplicates.

        Responses for overlapping ranges repeat the spans they share, and a
        span crossing a range boundary can be reported by both requests.
        The sort is stable, so tokens sharing a start keep their emission order.
        """
        seen = set()
        ordered: List[Token] = []
        for token in sorted(tokens, key=lambda t: (t.line, t.start_char)):
            if token in seen:
                continue
            seen.add(token)
            ordered.append(token)
        return ordered

    def calculate_relative_positions(self, tokens: Iterable[Token]) -> List[int]:
        """
        Calculate relative positions for tokens in LSP semantic tokens format.

        Args:
            tokens: Tokens in non-decreasing (line, start_char) order

        Returns:
            List of integers in LSP semantic tokens format:
            [delta_line, delta_start, length, token_type, token_modifiers, ...]

        Raises:
            ValueError: If a token precedes the one pushed before it
        """
        data: List[int] = []
        prev_line = 0
        prev_char = 0

        for token in tokens:
            if (token.line, token.start_char) < (prev_line, prev_char):
                raise ValueError(
                    f"Token at {token.line}:{token.start_char} precedes previous token at {prev_line}:{prev_char}"
                )

            delta_line = token.line - prev_line
            delta_start = token.start_char - prev_char if delta_line == 0 else token.start_char

            data.extend([
                delta_line,
                delta_start,
                token.length,
                token.token_type,
                token.token_modifiers,
            ])

            prev_line = token.line
            prev_char = token.start_char

        return data
