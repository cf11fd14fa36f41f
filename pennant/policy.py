"""
Parse policy: what a registry does on errors, unknown flags and argument counts.

- ErrorHandling: CONTINUE raises the typed fault, EXIT renders it with the usage
  and ends the process (status 2, or 0 for a help request), PANIC renders and raises.
- Tolerance: whether unknown flags (and the bare value following them) are skipped.
- ArgCount: positional argument count requirement checked once the walk is done.
"""
from enum import IntEnum

from .faults import ArgCountError, FaultCode, getdoc
from .utils import Unset, coalesce


class ErrorHandling(IntEnum):
    CONTINUE = 0
    EXIT = 1
    PANIC = 2

    def options(self):
        """
        trigger options for this mode (see faults.trigger).
        """
        return {"shell": self is not ErrorHandling.CONTINUE, "deferred": self is ErrorHandling.PANIC}


class Tolerance:
    """
    unknown-flag tolerance switches.

    - unknown_flags: skip unrecognized flags instead of failing.
    - unknown_values: also skip the bare token following an unrecognized flag
      written without "=" (only meaningful when unknown_flags is on).
    """

    def __init__(self, unknown_flags=False, unknown_values=True):
        self.unknown_flags = unknown_flags
        self.unknown_values = unknown_values

    def __repr__(self):
        return "Tolerance(unknown_flags=%r, unknown_values=%r)" % (self.unknown_flags, self.unknown_values)


class ArgCount:
    """
    positional argument count requirement.

    build with ArgCount.any(), exact(n), at_least(n), at_most(n) or between(low, high);
    check(count) raises ArgCountError on violation.
    """

    def __init__(self, minimum=Unset, maximum=Unset, /):
        if minimum is not Unset and maximum is not Unset and minimum > maximum:
            raise ValueError("minimum argument count must not exceed the maximum")
        if any(bound is not Unset and bound < 0 for bound in (minimum, maximum)):
            raise ValueError("argument counts must not be negative")
        self.minimum = minimum
        self.maximum = maximum

    @classmethod
    def any(cls):
        return cls()

    @classmethod
    def exact(cls, count, /):
        return cls(count, count)

    @classmethod
    def at_least(cls, count, /):
        return cls(count)

    @classmethod
    def at_most(cls, count, /):
        return cls(Unset, count)

    @classmethod
    def between(cls, minimum, maximum, /):
        return cls(minimum, maximum)

    @property
    def kind(self):
        match self.minimum is Unset, self.maximum is Unset:
            case True, True:
                return "any"
            case False, True:
                return "minimum"
            case True, False:
                return "maximum"
        return "exact" if self.minimum == self.maximum else "range"

    def check(self, count, /):
        minimum = coalesce(self.minimum, 0)
        maximum = coalesce(self.maximum, count)
        if minimum <= count <= maximum:
            return
        match self.kind:
            case "exact":
                message = "accepts %d arg(s), received %d" % (minimum, count)
                expected = minimum
            case "minimum":
                message = "requires at least %d arg(s), only received %d" % (minimum, count)
                expected = minimum
            case "maximum":
                message = "accepts at most %d arg(s), received %d" % (maximum, count)
                expected = maximum
            case _:
                message = "accepts between %d and %d arg(s), received %d" % (minimum, maximum, count)
                expected = (minimum, maximum)
        raise ArgCountError(
            message,
            title="wrong number of arguments",
            code=FaultCode.ARG_COUNT,
            hint="pass %s positional argument(s)" % (
                "%d to %d" % expected if isinstance(expected, tuple) else expected
            ),
            expected_kind=self.kind,
            expected_n=expected,
            actual_n=count,
            docs=getdoc(FaultCode.ARG_COUNT),
        )

    def __repr__(self):
        return "ArgCount(%r, %r)" % (self.minimum, self.maximum)


__all__ = (
    "ErrorHandling",
    "Tolerance",
    "ArgCount",
)
