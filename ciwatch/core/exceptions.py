class CIWatchException(Exception):
    """ Base class for all ciwatch Exceptions """

    pass


class CIWatchUsageError(CIWatchException):
    """ An exception thrown due to improper usage which should be resolvable by proper usage """

    pass


class ConfigurationError(CIWatchUsageError):
    """ Raised when required connection settings are blank or invalid """

    def __init__(self, message=None, field=None):
        super(ConfigurationError, self).__init__(message)
        self.message = message
        self.field = field

    def __str__(self):
        return self.message or ""


class TransportError(CIWatchException):
    """ Raised when a single submission to the backend fails (timeout, non-2xx, refused connection) """

    def __init__(self, message, response=None):
        super(TransportError, self).__init__(message)
        self.response = response
