from __future__ import annotations

from typing import Any, Dict, Mapping


class VmError(Exception):
    """
    Structured error used inside the pool runtime.

    Supported call patterns:

        VmError("simple message")

        VmError("message", code="some_code", context={...})

        # 2-positional form:
        VmError("SOME_CODE", "message")
        VmError("SOME_CODE", "message", context={...})

    Subclasses may pin a default ``code`` as a class attribute; an explicit
    ``code=`` keyword still wins.

    Attributes:
        code: short machine-readable code string
        message: human-readable message
        context: optional extra fields for debugging / host wiring
    """

    code: str = "vm_error"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        code: str = type(self).code
        context: Dict[str, Any] = {}

        if "code" in kwargs:
            code = str(kwargs.pop("code"))

        if "context" in kwargs:
            ctx = kwargs.pop("context")
            if ctx is None:
                context = {}
            elif isinstance(ctx, Mapping):
                context = dict(ctx)
            else:
                context = dict(ctx)  # type: ignore[arg-type]

        if len(args) == 0:
            # Fall back to the first docstring line of the (sub)class.
            doc = (type(self).__doc__ or "").strip()
            message = doc.splitlines()[0] if doc else ""
        elif len(args) == 1:
            message = str(args[0])
        else:
            code = str(args[0])
            message = str(args[1])

        super().__init__(message)

        self.code = code
        self.message = message
        self.context = context

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


class Revert(VmError):
    """Contract-level rejection of a call; all state of the call is rolled back."""

    code = "revert"


__all__ = ["VmError", "Revert"]
