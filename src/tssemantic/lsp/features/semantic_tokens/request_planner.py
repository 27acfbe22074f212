"""Planning of classification requests for a document."""

import logging
from typing import List, Optional, Sequence

from lsprotocol import types

from tssemantic.lsp.utils.models import ClassificationRequest
from tssemantic.lsp.utils.text_document import DocumentTextModel


logger = logging.getLogger(__name__)


class RequestPlanner:
    """Turns requested ranges, or the whole document, into classification requests."""

    def plan(
        self,
        file: str,
        document: DocumentTextModel,
        ranges: Optional[Sequence[types.Range]] = None,
    ) -> List[ClassificationRequest]:
        """
        Plan the classification requests for a document.

        Requests are sorted by start offset so that decoding their responses
        in order yields tokens in document order.

        Args:
            file: File name as known to tsserver
            document: Text model used to convert positions to offsets
            ranges: Ranges to classify, or None for the whole document

        Returns:
            Non-empty list of requests, ascending by start
        """
        if not ranges:
            return [ClassificationRequest(file=file, start=0, length=document.length)]

        requests = []
        for requested_range in ranges:
            start = document.offset_at(requested_range.start)
            end = document.offset_at(requested_range.end)
            requests.append(ClassificationRequest(file=file, start=start, length=max(0, end - start)))

        requests.sort(key=lambda request: request.start)
        logger.debug(f"Planned {len(requests)} classification requests for {file}")
        return requests
