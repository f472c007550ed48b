"""
exceptions.py

Exception hierarchy shared by the esadmin packages.
"""


class EsAdminException(Exception):
    """
    Base class for every exception raised by esadmin.
    """


class ActionError(EsAdminException):
    """
    An operation could not be completed.
    """


class HttpStatusError(ActionError):
    """
    A remote call answered with a status code other than 200.

    The body is kept verbatim and is never interpreted.
    """

    def __init__(self, status: int, body=None, url: str = None) -> None:
        self.status = status
        self.body = body
        self.url = url
        where = f" from {url}" if url else ""
        super().__init__(f"HTTP {status}{where}: {body}")


class MalformedResponseError(ActionError):
    """
    A remote call answered 200 but the body is not valid JSON.
    """


class ConnectionFailure(ActionError):
    """
    The remote service could not be reached at all.
    """


class PreconditionError(EsAdminException):
    """
    A prerequisite for the operation is not met.
    """


class MissingInputError(EsAdminException):
    """
    A required interactive answer was left empty.
    """


class InvalidInputError(EsAdminException):
    """
    An interactive answer could not be interpreted (e.g. "maybe" for a boolean).
    """


class ConfigurationError(EsAdminException):
    """
    The environment file is missing or holds invalid values.
    """


class RecoveryTimeoutError(ActionError):
    """
    Shard recovery did not reach DONE before the deadline.
    """


class RecoveryCancelled(ActionError):
    """
    Recovery polling was stopped by the cancel signal.
    """
