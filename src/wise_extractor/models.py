from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator


# En JSON los montos salen como número (120.5), en Python siguen siendo Decimal
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Transaction(BaseModel):
    description: str
    date: str = Field(..., description="ISO date YYYY-MM-DD")
    incoming: Optional[Money] = None
    outgoing: Optional[Money] = None
    amount: Money = Field(..., ge=0, description="Absolute value of incoming/outgoing")
    reference: str = ""
    currency: str
    # saldo impreso por Wise junto al monto; solo para conciliar, no se exporta
    balance: Optional[Decimal] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _one_side_only(self) -> "Transaction":
        if (self.incoming is None) == (self.outgoing is None):
            raise ValueError("exactly one of incoming/outgoing must be set")
        side = self.incoming if self.incoming is not None else self.outgoing
        if side < 0 or side != self.amount:
            raise ValueError("amount must equal the non-negative incoming/outgoing value")
        return self


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", description="ISO date YYYY-MM-DD")
    to: str = Field(..., description="ISO date YYYY-MM-DD")


class ParseResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    currency: str
    date_range: DateRange = Field(..., alias="dateRange")
    transactions: List[Transaction] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Forma JSON que consumen el endpoint de upload y la CLI."""
        return self.model_dump(mode="json", by_alias=True)
