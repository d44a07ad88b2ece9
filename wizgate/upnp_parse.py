"""Parsers for the replies an Internet Gateway Device sends."""

from __future__ import annotations

from dataclasses import dataclass

from wizgate.netutil import atoi

__all__ = [
    "ParseError",
    "UPnPError",
    "Location",
    "ServiceURLs",
    "parse_http",
    "parse_ssdp",
    "parse_description",
    "parse_eventing",
    "parse_error",
    "parse_delete_port",
    "parse_add_port",
]

SERVICE = "urn:schemas-upnp-org:service:WANIPConnection:1"
EVENT_FIELDS = (
    "PossibleConnectionTypes",
    "ConnectionStatus",
    "ExternalIPAddress",
    "PortMappingNumberOfEntries",
)


class ParseError(ValueError):
    """A reply could not be parsed or did not report success."""

    def __init__(self, message: str, status_line: str | None = None) -> None:
        super().__init__(message)
        self.status_line = status_line


class UPnPError(Exception):
    """A SOAP fault returned by the gateway."""

    def __init__(self, code: int, fault: str, description: str) -> None:
        super().__init__(f"{fault} {code}: {description}")
        self.code = code
        self.fault = fault
        self.description = description


@dataclass(frozen=True)
class Location:
    """Where the device description lives, from the SSDP LOCATION header."""

    url: str
    host: str
    port: int
    path: str


@dataclass(frozen=True)
class ServiceURLs:
    """Control and eventing URLs of the WANIPConnection service."""

    control_url: str
    event_sub_url: str


def _between(text: str, start_tag: str, end_tag: str, offset: int = 0) -> str | None:
    begin = text.find(start_tag, offset)
    if begin < 0:
        return None
    begin += len(start_tag)
    end = text.find(end_tag, begin)
    if end < 0:
        return None
    return text[begin:end]


def parse_http(text: str) -> None:
    """Check that ``text`` is a '200 OK' reply; raise ParseError with its status line otherwise."""
    if "200 OK" in text:
        return
    status = text.split("\r\n", 1)[0]
    raise ParseError(f"HTTP error: {status}", status)


def parse_ssdp(text: str) -> Location:
    """Extract the description location from an SSDP search reply."""
    parse_http(text)
    url = _between(text, "LOCATION: ", "\r\n")
    if url is None:
        raise ParseError("no LOCATION header")
    scheme = url.find("http://")
    if scheme < 0:
        raise ParseError(f"LOCATION is not an http URL: {url!r}")
    rest = url[scheme + len("http://"):]
    colon = rest.find(":")
    if colon < 0:
        raise ParseError(f"LOCATION has no port: {url!r}")
    host = rest[:colon]
    slash = rest.find("/", colon + 1)
    if slash < 0:
        raise ParseError(f"LOCATION has no path: {url!r}")
    port_text = rest[colon + 1:slash]
    if not port_text.isdigit():
        raise ParseError(f"LOCATION port is not a number: {port_text!r}")
    return Location(url=url, host=host, port=int(port_text), path=rest[slash:])


def parse_description(text: str) -> ServiceURLs:
    """Extract the WANIPConnection control and eventing URLs from a device description."""
    parse_http(text)
    service = text.find(SERVICE)
    if service < 0:
        raise ParseError("no WANIPConnection service in description")
    control = _between(text, "<controlURL>", "</controlURL>", service)
    if control is None:
        raise ParseError("no controlURL for WANIPConnection")
    event = _between(text, "<eventSubURL>", "</eventSubURL>", service)
    if event is None:
        raise ParseError("no eventSubURL for WANIPConnection")
    return ServiceURLs(control_url=control, event_sub_url=event)


def parse_eventing(text: str) -> dict[str, str]:
    """Return the known state variables reported in an event notification."""
    found = {}
    for name in EVENT_FIELDS:
        value = _between(text, f"<{name}>", f"</{name}>")
        if value is not None:
            found[name] = value
    return found


def parse_error(text: str) -> UPnPError:
    """Return the SOAP fault described in ``text``; raise ParseError if it is incomplete."""
    fields = []
    for name in ("faultstring", "errorCode", "errorDescription"):
        value = _between(text, f"<{name}>", f"</{name}>")
        if value is None:
            raise ParseError(f"no {name} in error reply")
        fields.append(value)
    fault, code_text, description = fields
    code = atoi(code_text, 10)
    if code >= 0x8000:
        code -= 0x10000
    return UPnPError(code, fault, description)


def _parse_mapping_reply(text: str, action: str) -> None:
    if f'u:{action}Response xmlns:u="{SERVICE}"' in text:
        return
    raise parse_error(text)


def parse_delete_port(text: str) -> None:
    """Accept a DeletePortMapping reply; raise UPnPError or ParseError on failure."""
    _parse_mapping_reply(text, "DeletePortMapping")


def parse_add_port(text: str) -> None:
    """Accept an AddPortMapping reply; raise UPnPError or ParseError on failure."""
    _parse_mapping_reply(text, "AddPortMapping")