"""
Calculator exceptions.

Every failure raised by the expression engine is a ``CalculatorError``
subclass carrying a human-readable message and a ``details`` dict that the
HTTP front end copies into its error responses.
"""

from typing import Any, Dict, Optional


class CalculatorError(Exception):
    """Base exception for expression engine errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MalformedExpressionError(CalculatorError):
    """Raised when an expression cannot be tokenized, converted or reduced to one value"""

    def __init__(self, message: str, position: Optional[int] = None):
        self.position = position
        details = {"position": position} if position is not None else {}
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message, details)


class UnknownFunctionError(CalculatorError):
    """Raised when a function name is not registered"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Function '{name}' is not registered", {"function": name})


class UndefinedVariableError(CalculatorError):
    """Raised when a variable token has no binding"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable '{name}' is not defined", {"variable": name})


class DomainError(CalculatorError):
    """Raised when an argument lies outside a function's domain"""

    def __init__(self, message: str, function: Optional[str] = None):
        self.function = function
        super().__init__(message, {"function": function} if function else {})


class DivideByZeroError(CalculatorError):
    """Raised on division by zero"""

    def __init__(self, message: str = "Cannot divide by zero"):
        super().__init__(message)


class RangeError(CalculatorError):
    """Raised for out-of-range bounds: summation limits, term caps, derivative orders"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, details)
