"""
AI Service
Translates questions to SQL using Gemini, with the rule-based synthesizer as fallback.
"""

import re
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import google.generativeai as genai

from .config_service import ConfigService
from .error_handling_service import (
    AIBackendUnavailableError,
    ErrorCategory,
    ErrorHandlingService,
)
from .sql_generation_service import SQLGenerationService
from prompts.ai_prompts import get_sql_prompt


SOURCE_AI = "ai"
SOURCE_RULES = "rules"

# Errors worth retrying against the same model
TRANSIENT_ERROR_MARKERS = (
    'incomplete envelope', 'reset by peer', 'connection reset',
    'deadline exceeded', 'unavailable', '503', '429',
)

# Text up to the first semicolon outside quoted literals and identifiers
STATEMENT_RE = re.compile(r"""(?:[^;'"]|'[^']*'|"[^"]*"|['"])*""")

DENIED_KEYWORDS = (
    'PRAGMA', 'ATTACH', 'DETACH', 'LOAD', 'INSTALL', 'COPY', 'EXPORT',
    'CREATE', 'INSERT', 'UPDATE', 'DELETE', 'DROP', 'ALTER', 'TRUNCATE',
    'GRANT', 'REVOKE', 'EXEC', 'EXECUTE', 'CALL',
)


@dataclass(frozen=True)
class TranslationResult:
    sql: str
    source: str


class SQLTranslator(Protocol):
    """Anything that turns a question plus schema into SQL."""

    source: str

    def is_available(self) -> bool:
        ...

    def translate(self, question: str, schema: Sequence[str]) -> str:
        ...


class RuleBasedTranslator:
    """Keyword pattern translator. Always available, never raises."""

    source = SOURCE_RULES

    def __init__(self, sql_service: Optional[SQLGenerationService] = None):
        self.sql_service = sql_service or SQLGenerationService()

    def is_available(self) -> bool:
        return True

    def translate(self, question: str, schema: Sequence[str]) -> str:
        pattern, sql = self.sql_service.classify(question, schema)
        ErrorHandlingService.log_error(
            f"Rule-based translation matched pattern '{pattern}'",
            category=ErrorCategory.DATA_PROCESSING,
            log_level="DEBUG",
            context="rule_translate",
        )
        return sql


def clean_model_sql(text: str, table_name: str) -> str:
    """
    Extract one usable SELECT statement from a model reply.

    Strips Markdown fences and backticks, keeps the first statement, drops a
    trailing semicolon and appends a FROM clause when the model left it out.

    Raises:
        AIBackendUnavailableError: if the reply holds no read-only SELECT
    """
    if not text or not text.strip():
        raise AIBackendUnavailableError("AI backend returned an empty response")

    s = text.strip()

    # Extract triple-backtick block if present
    m = re.search(r"```(?:sql)?\s*\n?([\s\S]*?)```", s, flags=re.IGNORECASE)
    if m:
        s = m.group(1).strip()
    s = s.replace("`", "")

    sel = re.search(r"\bSELECT\b", s, flags=re.IGNORECASE)
    if not sel:
        raise AIBackendUnavailableError("AI backend did not return a SELECT statement")
    s = s[sel.start():]

    # Single statement only; semicolons inside quotes do not end it
    s = STATEMENT_RE.match(s).group(0)
    s = re.sub(r"\s+", " ", s).strip()
    s = "SELECT" + s[len("SELECT"):]

    if not re.search(r"\bFROM\b", s, flags=re.IGNORECASE):
        s = f"{s} FROM {table_name}"

    # Quoted identifiers and literals may legitimately contain keywords
    unquoted = re.sub(r"\"[^\"]*\"|'[^']*'", " ", s)
    tokens = set(re.findall(r"\b\w+\b", unquoted.upper()))
    for keyword in DENIED_KEYWORDS:
        if keyword in tokens:
            raise AIBackendUnavailableError(
                f"AI backend returned a disallowed statement ({keyword})"
            )

    return s


class GeminiSQLTranslator:
    """Translator backed by the Gemini text generation API."""

    source = SOURCE_AI

    def __init__(
        self,
        api_key: Optional[str] = None,
        table_name: Optional[str] = None,
        model_names: Optional[Sequence[str]] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_base: Optional[float] = None
    ):
        self.api_key = api_key if api_key is not None else ConfigService.get_gemini_api_key()
        self.table_name = table_name or ConfigService.TABLE_NAME
        self.model_names = list(model_names or ConfigService.GEMINI_MODELS)
        self.retry_attempts = retry_attempts if retry_attempts is not None else ConfigService.GEMINI_RETRY_ATTEMPTS
        self.retry_delay_base = retry_delay_base if retry_delay_base is not None else ConfigService.GEMINI_RETRY_DELAY_BASE
        self.loaded = self._configure()

    def _configure(self) -> bool:
        """Configure the Gemini client; False when no key or configuration fails."""
        if not self.api_key:
            return False
        try:
            genai.configure(api_key=self.api_key)
            return True
        except Exception as e:
            ErrorHandlingService.log_error(
                f"Gemini configuration failed: {e}",
                category=ErrorCategory.API,
                log_level="WARNING",
                context="gemini_configure",
            )
            return False

    def is_available(self) -> bool:
        return self.loaded and bool(self.model_names)

    def translate(self, question: str, schema: Sequence[str]) -> str:
        """
        Ask Gemini for SQL, trying each configured model with retries.

        Raises:
            AIBackendUnavailableError: backend not loaded, unreachable, or unusable reply
        """
        if not self.is_available():
            raise AIBackendUnavailableError("AI backend is not configured")

        prompt = get_sql_prompt(question, self.table_name, schema)
        last_err = None

        for mname in self.model_names:
            model = genai.GenerativeModel(mname)
            for attempt in range(max(self.retry_attempts, 1)):
                try:
                    resp = model.generate_content(
                        prompt,
                        generation_config={
                            "temperature": ConfigService.GEMINI_TEMPERATURE,
                            "max_output_tokens": ConfigService.GEMINI_MAX_OUTPUT_TOKENS,
                        },
                    )
                    return clean_model_sql(resp.text, self.table_name)
                except AIBackendUnavailableError as e:
                    # Unusable reply; another model may do better
                    last_err = str(e)
                    break
                except Exception as e:
                    last_err = str(e)
                    if any(x in last_err.lower() for x in TRANSIENT_ERROR_MARKERS):
                        time.sleep(self.retry_delay_base * (2 ** attempt))
                        continue
                    break

        raise AIBackendUnavailableError(
            f"AI service unavailable: {last_err or 'Unknown error'}"
        )


class FallbackTranslator:
    """Tries the primary translator and silently falls back on failure."""

    def __init__(self, primary: SQLTranslator, fallback: SQLTranslator):
        self.primary = primary
        self.fallback = fallback

    def is_available(self) -> bool:
        return self.primary.is_available() or self.fallback.is_available()

    def translate(self, question: str, schema: Sequence[str]) -> TranslationResult:
        if self.primary.is_available():
            try:
                sql = self.primary.translate(question, schema)
                return TranslationResult(sql=sql, source=self.primary.source)
            except AIBackendUnavailableError as e:
                ErrorHandlingService.log_error(
                    f"AI generation failed, falling back to patterns: {e}",
                    category=ErrorCategory.API,
                    log_level="WARNING",
                    context="translate",
                )
        return TranslationResult(
            sql=self.fallback.translate(question, schema),
            source=self.fallback.source,
        )


class AIService:
    """Entry point used by the chat flow for question to SQL translation."""

    def __init__(
        self,
        use_ai: Optional[bool] = None,
        ai_translator: Optional[SQLTranslator] = None,
        rule_translator: Optional[SQLTranslator] = None
    ):
        self.rule_translator = rule_translator or RuleBasedTranslator()
        if use_ai is None:
            use_ai = ConfigService.use_gemini()
        self.use_ai = use_ai
        self.ai_translator = ai_translator
        if self.ai_translator is None and self.use_ai:
            self.ai_translator = GeminiSQLTranslator()

    @property
    def ai_ready(self) -> bool:
        return bool(self.use_ai and self.ai_translator is not None and self.ai_translator.is_available())

    def translate(self, question: str, schema: Sequence[str]) -> TranslationResult:
        if self.use_ai and self.ai_translator is not None:
            return FallbackTranslator(self.ai_translator, self.rule_translator).translate(question, schema)
        return TranslationResult(
            sql=self.rule_translator.translate(question, schema),
            source=self.rule_translator.source,
        )
