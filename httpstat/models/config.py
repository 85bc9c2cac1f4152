from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..exceptions import InvalidSettingsError

if TYPE_CHECKING:
    from ..observability.logging import StatLoggerAdapter

DEFAULT_REQUEST_DELAY = 3.0
MAX_REDIRECTS = 10


class AddressFamily(str, Enum):
    AUTO = "auto"
    IPV4 = "ipv4"
    IPV6 = "ipv6"

    @classmethod
    def from_flags(cls, ipv4: bool, ipv6: bool) -> "AddressFamily":
        """Map the -4/-6 flags onto a family; both at once is a conflict."""
        if ipv4 and ipv6:
            raise InvalidSettingsError(
                message="Only one of -4 and -6 may be specified",
                setting_name="address_family",
            )
        if ipv4:
            return cls.IPV4
        if ipv6:
            return cls.IPV6
        return cls.AUTO


@dataclass
class Timeouts:
    connect: float = 30.0    # dialer timeout
    read: Optional[float] = None  # bounded by max_time instead
    write: Optional[float] = None
    pool: float = 10.0


@dataclass
class StatSettings:
    # Request
    method: str = "GET"
    body: str = ""                          # literal body, or "@path" to stream a file
    headers: list[str] = field(default_factory=list)  # raw "Name: value" strings
    head_only: bool = False

    # Redirects and repetition
    follow_redirects: bool = False
    max_redirects: int = MAX_REDIRECTS
    num_requests: int = 1
    request_delay: float = DEFAULT_REQUEST_DELAY  # seconds between repeats
    max_time: Optional[float] = None        # overall deadline per exchange, seconds

    # Response body
    save_output: bool = False               # -O: save under the remote filename
    output_file: Optional[str] = None       # -o: save under this name

    # TLS
    insecure: bool = False
    client_cert: Optional[str] = None       # PEM holding certificate and private key
    ca_cert: Optional[str] = None           # extra trusted CA bundle

    # Transport
    address_family: AddressFamily = AddressFamily.AUTO
    http2: bool = True
    timeouts: Timeouts = field(default_factory=Timeouts)

    # Output
    json_output: bool = False

    # Logging
    logger: Optional["StatLoggerAdapter"] = None  # Optional custom logger instance

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if self.head_only:
            self.method = "HEAD"

    def validate(self) -> None:
        """
        Reject option combinations that cannot produce a request.

        Raises:
            InvalidSettingsError: on the first invalid option found
        """
        if not isinstance(self.address_family, AddressFamily):
            try:
                self.address_family = AddressFamily(self.address_family)
            except ValueError:
                raise InvalidSettingsError(
                    message="",
                    setting_name="address_family",
                    setting_value=self.address_family,
                ) from None
        if self.method in ("POST", "PUT") and not self.body:
            raise InvalidSettingsError(
                message="must supply post body using -d when POST or PUT is used",
                setting_name="body",
            )
        if self.num_requests < 1:
            raise InvalidSettingsError(
                message="", setting_name="num_requests", setting_value=self.num_requests
            )
        if self.request_delay < 0:
            raise InvalidSettingsError(
                message="", setting_name="request_delay", setting_value=self.request_delay
            )
        if self.max_time is not None and self.max_time <= 0:
            raise InvalidSettingsError(
                message="", setting_name="max_time", setting_value=self.max_time
            )
        if self.max_redirects < 0:
            raise InvalidSettingsError(
                message="", setting_name="max_redirects", setting_value=self.max_redirects
            )

    @property
    def saves_body(self) -> bool:
        return self.save_output or bool(self.output_file)
