import sys
import typing as t
import enum
import os

from . import feedback as fb


class PanicException(BaseException):
    def __init__(self, exit_code, msg) -> None:
        super().__init__(msg)
        self.exit_code = exit_code
        self.msg = msg


# lets callers write 'except panic.Exception'
Exception = PanicException


class ExitCode(enum.Enum):
    AllOK = 0
    BadCliArgs = 2
    BadConfigFile = 3
    BadSourcePath = 4
    SyntaxError = 5
    RequestError = 6
    NamingConflict = 7
    ConvergenceFailed = 8
    IOError = 9


def because(
    exit_code: ExitCode,
    opt_msg: t.Optional[str] = None,
    opt_file_path: t.Optional[str] = None,
    opt_loc: t.Optional[fb.ILoc] = None,
    outer_exc: t.Optional[BaseException] = None
):
    """
    Halts the run after printing a helpful error message with a reference to the error.
    NOTE: you can either supply 'opt_file_path' or 'opt_loc': do not mix.
    """

    if opt_file_path is not None:
        assert opt_loc is None

    if opt_msg:
        msg = f"PANIC: {opt_msg}"
    else:
        msg = f"PANIC: a fatal error has occurred"
    print(msg, file=sys.stderr)

    if opt_file_path:
        rel_path = opt_file_path
        abs_path = os.path.abspath(opt_file_path)
        if rel_path == abs_path:
            print(f"abspath: {opt_file_path}", file=sys.stderr)
        else:
            print(f"relpath: {rel_path}", file=sys.stderr)
            print(f"abspath: {abs_path}", file=sys.stderr)
    elif opt_loc is not None:
        print(f"at: {str(opt_loc)}", file=sys.stderr)
    else:
        # this is OK! sometimes, we have a global error: just ensure message includes locations.
        pass

    raise PanicException(exit_code, msg) from outer_exc
