import math
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from typing import Dict, Iterable, Mapping, Optional, Union, Tuple
from pydantic import BaseModel, ConfigDict
from app.database import Base
from app.services.logger_service import get_logger

logger = get_logger("quote_settings")


class QuoteSetting(Base):
    """One live pricing knob; values are stored as strings and parsed on read."""

    __tablename__ = "quote_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<QuoteSetting(key={self.key}, value={self.value})>"


class QuoteSettings(BaseModel):
    """
    Parsed pricing configuration used by the quote calculator.

    Only QLD has live state-rebate switches today; other states always use
    their catalog figures.

    `federal_rebate_per_kw` is informational only: it is parsed and carried
    for display, but the certificate amount is always computed from the STC
    formula and never from this figure.
    """

    model_config = ConfigDict(frozen=True)

    base_price_per_kw: float = 1100.0
    federal_rebate_per_kw: float = 500.0
    battery_cost: float = 4500.0
    rebates_enabled: bool = True
    qld_rebate_enabled: bool = True
    qld_state_rebate: float = 1000.0
    default_price_per_kwh: float = 0.28

    def state_rebates_enabled(self, state: str) -> bool:
        if state == "QLD":
            return self.qld_rebate_enabled
        return True

    def state_rebate_override(self, state: str) -> Optional[float]:
        """Live amount replacing the catalog figure for a state's programs, if any."""
        if state == "QLD":
            return self.qld_state_rebate
        return None

    @classmethod
    def from_key_values(
        cls,
        rows: Union[Mapping[str, str], Iterable[Tuple[str, str]]]
    ) -> "QuoteSettings":
        """
        Build settings from raw key/value strings.

        Missing keys keep their defaults. Booleans are true only for "true"
        (any case); numbers that do not parse keep their defaults.
        """
        raw: Dict[str, str] = dict(rows.items() if isinstance(rows, Mapping) else rows)
        defaults = DEFAULT_QUOTE_SETTINGS
        values = {}

        for name, field in cls.model_fields.items():
            if name not in raw or raw[name] is None:
                continue
            text = str(raw[name]).strip()
            if field.annotation is bool:
                values[name] = text.lower() == "true"
                continue
            try:
                number = float(text)
                if not math.isfinite(number):
                    raise ValueError(text)
                values[name] = number
            except ValueError:
                logger.log_warning(
                    "settings_parse",
                    f"Ignoring non-numeric value for '{name}'",
                    context={"key": name, "value": text[:50], "default": getattr(defaults, name)}
                )

        return cls(**values)


DEFAULT_QUOTE_SETTINGS = QuoteSettings()
