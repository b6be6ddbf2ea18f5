from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple

from loanquote.exceptions import ConfigurationError


@dataclass(frozen=True)
class CurrencyConfig:
    symbol: str
    code: str
    locale: str


@dataclass(frozen=True)
class RangeConfig:
    """Slider bounds for an input (amount in currency units, term in years)."""
    min: float
    max: float
    step: float
    default: float

    def clamp(self, value: float) -> float:
        """Clamp a raw value into bounds and snap it to the nearest step."""
        value = max(self.min, min(self.max, value))
        if self.step <= 0:
            return value
        steps = round((value - self.min) / self.step)
        return min(self.max, self.min + steps * self.step)


@dataclass(frozen=True)
class RateBracket:
    min_amount: float
    max_amount: float
    rate: float

    def contains(self, amount: float) -> bool:
        return self.min_amount <= amount <= self.max_amount


@dataclass(frozen=True)
class LoanConfig:
    """Session configuration, loaded once and never mutated."""
    currency: CurrencyConfig
    loan_amount: RangeConfig
    loan_term: RangeConfig
    interest_rates: Tuple[RateBracket, ...]
    reset_on_quote: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanConfig':
        """Build a config from the camelCase mapping served by the backend.

        Raises:
            ConfigurationError: If a section is missing or malformed.
        """
        try:
            currency = data['currency']
            amount = data['loanAmount']
            term = data['loanTerm']
            return cls(
                currency=CurrencyConfig(
                    symbol=currency['symbol'],
                    code=currency['code'],
                    locale=currency['locale'],
                ),
                loan_amount=RangeConfig(
                    amount['min'], amount['max'], amount['step'], amount['default']
                ),
                loan_term=RangeConfig(
                    term['min'], term['max'], term['step'], term['default']
                ),
                interest_rates=tuple(
                    RateBracket(b['minAmount'], b['maxAmount'], b['rate'])
                    for b in data['interestRates']
                ),
                reset_on_quote=bool(data.get('resetOnQuote', True)),
            )
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid loan configuration: missing {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase mapping read by from_dict()."""
        def bounds(r: RangeConfig) -> Dict[str, float]:
            return {'min': r.min, 'max': r.max, 'step': r.step, 'default': r.default}

        return {
            'currency': asdict(self.currency),
            'loanAmount': bounds(self.loan_amount),
            'loanTerm': bounds(self.loan_term),
            'interestRates': [
                {'minAmount': b.min_amount, 'maxAmount': b.max_amount, 'rate': b.rate}
                for b in self.interest_rates
            ],
            'resetOnQuote': self.reset_on_quote,
        }


@dataclass
class LoanQuoteRequest:
    """Payload for a single submission attempt. Term is in months."""
    loan_amount: float
    loan_term: float
    has_quoted: bool = False


@dataclass(frozen=True)
class QuoteResult:
    success: bool
    message: str
    quote_id: Optional[str] = None
    estimated_processing_time_ms: Optional[int] = None


@dataclass(frozen=True)
class ClassifiedError:
    kind: str
    message: str
    retry_after_seconds: Optional[int] = None
    code: Optional[str] = None


@dataclass
class EngineState:
    loan_amount: float
    loan_term: float
    has_quoted: bool = False
    is_submitting: bool = False
    last_error: Optional[str] = None
    last_error_kind: Optional[str] = None
    last_result: Optional[QuoteResult] = None

    def snapshot(self, saved_at: datetime = None) -> 'SavedState':
        """Capture the persistable part of the state."""
        return SavedState(
            loan_amount=self.loan_amount,
            loan_term=self.loan_term,
            has_quoted=self.has_quoted,
            saved_at=saved_at or datetime.now(),
        )


@dataclass
class SavedState:
    """Snapshot of EngineState kept in the local cache."""
    loan_amount: float
    loan_term: float
    has_quoted: bool = False
    saved_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['saved_at'] = self.saved_at.isoformat()
        return data


@dataclass(frozen=True)
class RepaymentSummary:
    monthly_payment: float
    total_repayable: float
    total_interest: float
    payment_count: int
