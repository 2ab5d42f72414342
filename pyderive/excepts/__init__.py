import abc


class DeriveError(Exception, metaclass=abc.ABCMeta):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class RequestError(DeriveError):
    """
    A call site asked for something the operation cannot provide: wrong arity, mismatched argument types, ...
    """


class UnsupportedTypeError(RequestError):
    pass


class NamingConflictError(DeriveError):
    pass
