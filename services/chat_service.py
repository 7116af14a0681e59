"""
Chat Service
Handles one user action at a time: uploading a file or asking a question.

Failures are turned into conversational replies so the session stays usable.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .ai_service import AIService
from .chart_service import ChartService, ChartSpec
from .column_detection_service import ColumnDetectionService
from .dataset_service import DatasetService, DatasetSession, SchemaRegistry
from .error_handling_service import ErrorCategory, ErrorHandlingService
from .file_parsing_service import FileParsingService
from .insight_service import InsightService
from .query_execution_service import QueryExecutionService


@dataclass
class UploadResult:
    success: bool
    message: str
    session: Optional[DatasetSession] = None
    error_info: Optional[dict[str, Any]] = None


@dataclass
class ChatResponse:
    """Everything the UI needs to render one answer."""
    question: str
    message: str
    sql: str = ""
    source: str = ""
    columns: tuple[str, ...] = ()
    rows: tuple[dict[str, Any], ...] = ()
    insights: list[str] = field(default_factory=list)
    metrics: list[dict[str, str]] = field(default_factory=list)
    chart: Optional[ChartSpec] = None
    detected_column: Optional[str] = None
    error: bool = False
    stale: bool = False


class ChatService:
    """Service wiring parsing, storage, translation, execution and insights."""

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        ai_service: Optional[AIService] = None,
        dataset_service: Optional[DatasetService] = None,
        file_parser: Optional[FileParsingService] = None,
        executor: Optional[QueryExecutionService] = None,
        insight_service: Optional[InsightService] = None,
        chart_service: Optional[ChartService] = None,
        column_detector: Optional[ColumnDetectionService] = None
    ):
        self.registry = registry or SchemaRegistry()
        self.ai_service = ai_service or AIService()
        self.dataset_service = dataset_service or DatasetService()
        self.file_parser = file_parser or FileParsingService()
        self.executor = executor or QueryExecutionService()
        self.insight_service = insight_service or InsightService()
        self.chart_service = chart_service or ChartService()
        self.column_detector = column_detector or ColumnDetectionService()

    def upload(self, filename: str, data: bytes) -> UploadResult:
        """
        Parse an uploaded file and make it the active dataset.

        On any failure the previous dataset stays active.
        """
        try:
            rows = self.file_parser.parse(filename, data)
            session = self.dataset_service.load(self.registry, rows, source_name=filename)
        except Exception as e:
            error_info = ErrorHandlingService.process_error(
                e,
                context='upload_file',
                category=getattr(e, 'category', ErrorCategory.DATA),
                details={'filename': filename},
            )
            ErrorHandlingService.log_error(error_info, log_level="ERROR")
            return UploadResult(
                success=False,
                message=f"Upload failed: {ErrorHandlingService.display_error(error_info)}",
                error_info=error_info,
            )

        return UploadResult(
            success=True,
            message=(
                f"Successfully loaded {session.row_count} rows with columns: "
                f"{', '.join(session.schema)}"
            ),
            session=session,
        )

    def ask(self, question: str) -> Optional[ChatResponse]:
        """
        Answer a question against the active dataset.

        Args:
            question: Raw user input

        Returns:
            ChatResponse, or None for blank input
        """
        question = (question or "").strip()
        if not question:
            return None

        session = self.registry.current
        if session is None:
            return ChatResponse(
                question=question,
                message="Please upload a CSV or Excel file before asking questions.",
                error=True,
            )

        sql = ""
        try:
            translation = self.ai_service.translate(question, session.schema)
            sql = translation.sql
            result = self.executor.execute(session, sql)
        except Exception as e:
            if not self.registry.is_current(session.fingerprint):
                # The session was replaced and closed before the query ran
                return self._replaced_response(question, sql)
            return self._error_response(question, sql, e)

        stale = not self.registry.is_current(result.fingerprint)
        if stale:
            ErrorHandlingService.log_error(
                "Dataset was replaced while the query was running; result is stale",
                category=ErrorCategory.DATA,
                log_level="WARNING",
                context="ask",
            )

        rows = result.rows
        detected = self.column_detector.resolve(question, session.schema)
        message = f"I found {len(rows)} results. Here's what I executed: `{sql}`"
        message += self.insight_service.detected_column_note(question, detected)
        if stale:
            message += " (This answer refers to a previously uploaded file.)"

        return ChatResponse(
            question=question,
            message=message,
            sql=sql,
            source=translation.source,
            columns=result.columns,
            rows=rows,
            insights=self.insight_service.generate_insights(rows, sql=sql, question=question),
            metrics=self.insight_service.extract_metrics(rows),
            chart=self.chart_service.determine_chart(rows, result.columns),
            detected_column=detected,
            stale=stale,
        )

    def _replaced_response(self, question: str, sql: str) -> ChatResponse:
        ErrorHandlingService.log_error(
            "Dataset was replaced before the query ran; nothing was executed",
            category=ErrorCategory.DATA,
            log_level="WARNING",
            context="ask",
        )
        return ChatResponse(
            question=question,
            message="Sorry, I encountered an error: The file was replaced while answering. Please ask again.",
            sql=sql,
            error=True,
            stale=True,
        )

    def _error_response(self, question: str, sql: str, error: Exception) -> ChatResponse:
        error_info = ErrorHandlingService.process_error(
            error,
            context='answer_question',
            details={'question': question[:100], 'sql': sql},
        )
        ErrorHandlingService.log_error(error_info)
        return ChatResponse(
            question=question,
            message=f"Sorry, I encountered an error: {ErrorHandlingService.display_error(error_info)}",
            sql=sql,
            error=True,
        )
