"""
Shared plumbing for document generators
"""

import time
from abc import ABC, abstractmethod
from typing import Optional, Union

from core.config import MAX_FILE_SIZE, MIME_TYPES
from core.exceptions import GenerationError
from models.export import (
    ExportFormat,
    ExportOptions,
    ExportResult,
    ExportResultData,
    ExportResultMetadata,
    ResearchSessionExportOptions,
)
from utils.date_utils import get_current_utc


class BaseGenerator(ABC):
    """Base class for document generators; one instance per export."""

    format: ExportFormat

    def __init__(self, options: Union[ExportOptions, ResearchSessionExportOptions]):
        self.options = options

    @abstractmethod
    def generate(self, data) -> ExportResult:
        """Render ``data`` and return a successful result or raise GenerationError."""

    def _success(
        self,
        content: bytes,
        filename: str,
        started: float,
        page_count: Optional[int] = None,
    ) -> ExportResult:
        fmt = self.format.value
        if len(content) > MAX_FILE_SIZE[fmt]:
            raise GenerationError(
                f"{fmt.upper()} exceeds maximum size of {MAX_FILE_SIZE[fmt]} bytes",
                code="FILE_TOO_LARGE",
            )
        return ExportResult(
            success=True,
            data=ExportResultData(
                blob=content,
                filename=filename,
                size=len(content),
                content_type=MIME_TYPES[fmt],
            ),
            metadata=ExportResultMetadata(
                format=fmt,
                generated_at=get_current_utc(),
                processing_time=(time.perf_counter() - started) * 1000,
                page_count=page_count,
            ),
        )


