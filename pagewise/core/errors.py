"""Error taxonomy shared by the reading session and the AI boundaries."""


class PagewiseError(Exception):
    """Base class for every error this service raises on purpose."""


class ServiceError(PagewiseError):
    """An outbound call failed: transport error, non-2xx answer or unusable body."""

    def __init__(
        self,
        message: str,
        *,
        service: str = "",
        failure_kind: str = "upstream",   # "transport", "upstream" or "malformed"
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.service = service
        self.failure_kind = failure_kind
        self.status_code = status_code


class MissingConfigError(PagewiseError):
    """A required credential or setting is absent; every call fails until it is set."""

    def __init__(self, setting: str):
        super().__init__(f"{setting} is not configured")
        self.setting = setting


class CapabilityError(PagewiseError):
    """The client platform lacks a feature the requested action needs."""

    def __init__(self, capability: str, message: str = ""):
        super().__init__(message or f"{capability} is not supported on this client")
        self.capability = capability
