"""Calculator engine for LoanQuote.

This module provides the LoanCalculatorEngine class which holds the current
loan inputs, derives the rate and repayment from them on demand and drives
the quote submission workflow on behalf of the UI layer.

Collaborators:
    - QuoteApi: quote submission boundary
    - RetryExecutor: retry policy around submission
    - StateStore / DebouncedSaver: best-effort local snapshot cache
"""
import logging
from typing import Awaitable, Callable, Optional

from loanquote.calculations import rate_for, monthly_payment, repayment_summary
from loanquote.config import DEFAULT_CONFIG, PERSIST_DEBOUNCE_SECONDS, RATE_LIMIT_RETRY_AFTER_SECONDS
from loanquote.data_structures import (
    ClassifiedError,
    EngineState,
    LoanConfig,
    LoanQuoteRequest,
    QuoteResult,
    RepaymentSummary,
    SavedState,
)
from loanquote.exceptions import ApiError, ConfigurationError, ErrorKind, StorageError, error_kind
from loanquote.formatting import format_quote_summary
from loanquote.result import Result, ErrorType
from loanquote.services import QuoteApi, RetryExecutor, StateStore, DebouncedSaver

logger = logging.getLogger(__name__)

SubmitQuote = Callable[[LoanQuoteRequest], Awaitable[QuoteResult]]

ERROR_MESSAGES = {
    ErrorKind.NETWORK_ERROR: "Network error. Please check your connection and try again.",
    ErrorKind.SERVER_ERROR: "Server error. Our team has been notified. Please try again later.",
    ErrorKind.TIMEOUT_ERROR: "Request timed out. Please try again.",
    ErrorKind.RATE_LIMIT_ERROR: "Too many requests. Please wait {retry_after} seconds before trying again.",
    ErrorKind.UNKNOWN_ERROR: "An unexpected error occurred. Please try again.",
}


class EngineStatus:
    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    QUOTED = "QUOTED"


def classify_error(error: BaseException) -> ClassifiedError:
    """Convert an exception into a ClassifiedError record."""
    if isinstance(error, ApiError):
        return ClassifiedError(
            kind=error.kind,
            message=error.message,
            retry_after_seconds=error.retry_after,
            code=error.code,
        )
    return ClassifiedError(kind=error_kind(error), message=str(error))


def error_message_for(error: ClassifiedError) -> str:
    """Map a classified failure to the message shown to the user."""
    if error.kind == ErrorKind.VALIDATION_ERROR:
        return error.message
    if error.kind == ErrorKind.RATE_LIMIT_ERROR:
        retry_after = error.retry_after_seconds or RATE_LIMIT_RETRY_AFTER_SECONDS
        return ERROR_MESSAGES[ErrorKind.RATE_LIMIT_ERROR].format(retry_after=retry_after)
    return ERROR_MESSAGES.get(error.kind, ERROR_MESSAGES[ErrorKind.UNKNOWN_ERROR])


async def load_config(fetch: Callable[[], Awaitable[LoanConfig]]) -> LoanConfig:
    """Fetch the session configuration, falling back to DEFAULT_CONFIG."""
    try:
        config = await fetch()
    except Exception as e:
        logger.error(f"Failed to load configuration, using defaults: {e}")
        return DEFAULT_CONFIG
    logger.info("Loan configuration loaded")
    return config


class LoanCalculatorEngine:
    """Holds calculator state and runs the quote workflow.

    Derived figures (interest_rate, monthly_payment) are recomputed from
    the current inputs on every read. request_quote() is guarded by the
    is_submitting/has_quoted flags, so overlapping calls submit once.

    Attributes:
        config: Session LoanConfig.
        state: Current EngineState.
        store: Optional StateStore for snapshots.
        retry_executor: RetryExecutor wrapping each submission.
    """

    def __init__(self, config: LoanConfig = DEFAULT_CONFIG,
                 submit_quote: SubmitQuote = None,
                 store: StateStore = None,
                 retry_executor: RetryExecutor = None,
                 saved_state: SavedState = None,
                 debounce_seconds: float = PERSIST_DEBOUNCE_SECONDS):
        if not config.interest_rates:
            raise ConfigurationError("No interest rate brackets configured")
        self.config = config
        self.store = store
        self._submit_quote = submit_quote
        self._quote_api = None
        self.retry_executor = retry_executor or RetryExecutor()
        self._saver = DebouncedSaver(self._save_snapshot, debounce_seconds) if store else None

        self.state = EngineState(
            loan_amount=config.loan_amount.default,
            loan_term=config.loan_term.default,
        )
        if saved_state is not None:
            self.state.loan_amount = saved_state.loan_amount
            self.state.loan_term = saved_state.loan_term
            self.state.has_quoted = saved_state.has_quoted

    @classmethod
    async def create(cls, api: QuoteApi = None, store: StateStore = None, **kwargs) -> 'LoanCalculatorEngine':
        """Load configuration and any saved snapshot, then build an engine.

        Saved snapshots are only restored when the configuration keeps
        state across quotes (reset_on_quote is False).
        """
        api = api or QuoteApi()
        config = await load_config(api.get_loan_config)

        saved_state = None
        if store is not None and not config.reset_on_quote:
            try:
                saved_state = store.load_state()
            except StorageError as e:
                logger.warning(f"Failed to load saved loan state: {e}")

        return cls(config, submit_quote=api.submit_quote, store=store,
                   saved_state=saved_state, **kwargs)

    @property
    def quote_api(self) -> QuoteApi:
        """Lazy-load the default QuoteApi."""
        if self._quote_api is None:
            self._quote_api = QuoteApi(self.config)
        return self._quote_api

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def loan_amount(self) -> float:
        return self.state.loan_amount

    @property
    def loan_term(self) -> float:
        """Loan term in years."""
        return self.state.loan_term

    @property
    def loan_term_months(self) -> int:
        return int(round(self.state.loan_term * 12))

    @property
    def has_quoted(self) -> bool:
        return self.state.has_quoted

    @property
    def is_submitting(self) -> bool:
        return self.state.is_submitting

    @property
    def last_error(self) -> Optional[str]:
        return self.state.last_error

    @property
    def last_error_kind(self) -> Optional[str]:
        return self.state.last_error_kind

    @property
    def last_result(self) -> Optional[QuoteResult]:
        return self.state.last_result

    @property
    def status(self) -> str:
        if self.state.is_submitting:
            return EngineStatus.SUBMITTING
        if self.state.has_quoted:
            return EngineStatus.QUOTED
        return EngineStatus.IDLE

    @property
    def interest_rate(self) -> float:
        return rate_for(self.state.loan_amount, self.config.interest_rates)

    @property
    def monthly_payment(self) -> float:
        return monthly_payment(self.state.loan_amount, self.interest_rate, self.state.loan_term)

    def repayment_summary(self) -> RepaymentSummary:
        return repayment_summary(self.state.loan_amount, self.interest_rate, self.state.loan_term)

    def quote_summary(self) -> str:
        return format_quote_summary(
            self.state.loan_amount, self.state.loan_term, self.interest_rate, self.config
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def set_amount(self, value: float) -> None:
        """Update the loan amount. The caller clamps to config bounds."""
        self.state.loan_amount = value
        self.clear_error()
        self._persist()

    def set_term(self, value: float) -> None:
        """Update the loan term in years. The caller clamps to config bounds."""
        self.state.loan_term = value
        self.clear_error()
        self._persist()

    def clear_error(self) -> None:
        self.state.last_error = None
        self.state.last_error_kind = None

    async def request_quote(self) -> Result[QuoteResult]:
        """Submit the current inputs for a quote.

        Returns:
            Result with the QuoteResult on success. On failure the Result
            carries the user-facing message and the ErrorKind, which are
            also stored on the state. Calls made while a quote is in
            flight or already obtained are ignored and return a failed
            Result with an ErrorType.
        """
        if self.state.has_quoted:
            return Result.fail("A quote has already been submitted", ErrorType.ALREADY_QUOTED)
        if self.state.is_submitting:
            return Result.fail("A quote submission is already in progress", ErrorType.IN_PROGRESS)

        self.state.is_submitting = True
        self.clear_error()
        request = LoanQuoteRequest(
            loan_amount=self.state.loan_amount,
            loan_term=self.loan_term_months,
            has_quoted=False,
        )

        try:
            result = await self.retry_executor.run(lambda: self._submit(request))
        except Exception as e:
            classified = classify_error(e)
            logger.error(f"Quote submission failed ({classified.kind}): {e}")
            self.state.last_error = error_message_for(classified)
            self.state.last_error_kind = classified.kind
            return Result.fail(self.state.last_error, classified.kind)
        finally:
            self.state.is_submitting = False

        self.state.last_result = result
        self.state.has_quoted = True
        logger.info(f"Quote {result.quote_id} submitted")
        self._persist_quoted()
        return Result.ok(result)

    async def retry_quote(self) -> Result[QuoteResult]:
        """Re-submit after a failure; ignored when no error is shown."""
        if not self.state.last_error:
            return Result.fail("There is no failed quote to retry", ErrorType.NO_ERROR)
        return await self.request_quote()

    async def _submit(self, request: LoanQuoteRequest) -> QuoteResult:
        if self._submit_quote is not None:
            return await self._submit_quote(request)
        return await self.quote_api.submit_quote(request)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save_snapshot(self, snapshot: SavedState) -> None:
        self.store.save_state(snapshot)

    def _persist(self) -> None:
        if self._saver is None:
            return
        if self.config.reset_on_quote and self.state.has_quoted:
            return
        self._saver.schedule(self.state.snapshot())

    def _persist_quoted(self) -> None:
        if self._saver is None:
            return
        if not self.config.reset_on_quote:
            self._saver.save_now(self.state.snapshot())
            return

        # Next session starts from the configured defaults
        self._saver.cancel()
        try:
            self.store.clear_state()
        except StorageError as e:
            logger.warning(f"Failed to clear saved loan state: {e}")

    def flush(self) -> bool:
        """Write any pending snapshot immediately."""
        if self._saver is None:
            return False
        return self._saver.flush()

    def shutdown(self) -> None:
        """Flush pending state and close the store."""
        self.flush()
        if self.store is not None:
            self.store.close()
