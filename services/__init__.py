"""
Services package for the Data Chat application.
Provides business logic separation from UI components.
"""

from .config_service import ConfigService, get_config
from .error_handling_service import (
    ErrorHandlingService,
    ErrorCategory,
    get_error_handler,
    DataChatError,
    UnsupportedFileTypeError,
    EmptyDatasetError,
    AIBackendUnavailableError,
    QueryExecutionError,
    NoColumnResolvedError,
)
from .value_extraction_service import ValueExtractionService
from .column_detection_service import ColumnDetectionService
from .sql_generation_service import SQLGenerationService, IntentPattern, INTENT_PATTERNS
from .ai_service import (
    AIService,
    GeminiSQLTranslator,
    RuleBasedTranslator,
    FallbackTranslator,
    TranslationResult,
)
from .file_parsing_service import FileParsingService
from .dataset_service import DatasetService, DatasetSession, SchemaRegistry
from .query_execution_service import QueryExecutionService, QueryResult
from .data_formatting_service import DataFormattingService
from .insight_service import InsightService
from .chart_service import ChartService, ChartSpec
from .chat_service import ChatService, ChatResponse, UploadResult

__all__ = [
    'ConfigService',
    'get_config',
    'ErrorHandlingService',
    'ErrorCategory',
    'get_error_handler',
    'DataChatError',
    'UnsupportedFileTypeError',
    'EmptyDatasetError',
    'AIBackendUnavailableError',
    'QueryExecutionError',
    'NoColumnResolvedError',
    'ValueExtractionService',
    'ColumnDetectionService',
    'SQLGenerationService',
    'IntentPattern',
    'INTENT_PATTERNS',
    'AIService',
    'GeminiSQLTranslator',
    'RuleBasedTranslator',
    'FallbackTranslator',
    'TranslationResult',
    'FileParsingService',
    'DatasetService',
    'DatasetSession',
    'SchemaRegistry',
    'QueryExecutionService',
    'QueryResult',
    'DataFormattingService',
    'InsightService',
    'ChartService',
    'ChartSpec',
    'ChatService',
    'ChatResponse',
    'UploadResult',
]
