"""Errores del parser de extractos Wise.

Todos heredan de StatementParseError: son errores del documento (422),
no se reintentan. Cualquier otra excepción es un fallo interno (5xx).
"""

from __future__ import annotations

from typing import Optional


class StatementParseError(ValueError):
    """El texto no encaja con la estructura de un extracto Wise.

    Attributes:
        message: Mensaje legible, se muestra tal cual al usuario.
        line: Línea del extracto que provocó el error (si aplica).
        line_number: Número de línea (1-based) en el texto de entrada.
    """

    http_status = 422
    retryable = False

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        self.message = message
        self.line = line
        self.line_number = line_number
        super().__init__(self._render())

    def _render(self) -> str:
        if self.line is None:
            return self.message
        where = f"line {self.line_number}" if self.line_number is not None else "line"
        return f'{self.message} ({where}: "{self.line}")'


class HeaderNotFound(StatementParseError):
    """Falta la moneda o el periodo del extracto."""


class MalformedDate(StatementParseError):
    pass


class MalformedAmount(StatementParseError):
    """Un monto no respeta la gramática, o un bloque no tiene monto."""

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
        token: Optional[str] = None,
    ):
        self.token = token
        super().__init__(message, line=line, line_number=line_number)


class TransactionOutOfRange(StatementParseError):
    pass


class EmptyStatement(StatementParseError):
    pass


class OrphanAmount(StatementParseError):
    """Línea de montos sin una transacción abierta."""


class BalanceMismatch(StatementParseError):
    """Los saldos que imprime Wise no cuadran con los montos."""


class MixedCurrencyStatement(StatementParseError):
    """El texto declara más de una moneda (export multi-moneda)."""
