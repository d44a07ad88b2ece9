"""Builders for the HTTP and SOAP messages sent to an Internet Gateway Device."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

__all__ = [
    "PortAction",
    "make_post_header",
    "make_get_header",
    "make_subscribe",
    "make_soap_add_control",
    "make_soap_delete_control",
]

_USER_AGENT = "Mozilla/4.0 (compatible; UPnP/1.0; Windows NT/5.1)"
_SUBSCRIBE_USER_AGENT = "Mozilla/4.0 (compatible; UPnP/1.1; Windows NT/5.1)"
_SERVICE = "urn:schemas-upnp-org:service:WANIPConnection:1"
_DT = 'xmlns:dt="urn:schemas-microsoft-com:datatypes"'
_TRAILER = "\r\nConnection: Keep-Alive\r\nCache-Control: no-cache\r\nPragma: no-cache\r\n\r\n"

SOAP_START = (
    '<?xml version="1.0"?>\r\n'
    '<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/" '
    'SOAP-ENV:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/"><SOAP-ENV:Body>'
)
SOAP_END = "</SOAP-ENV:Body></SOAP-ENV:Envelope>\r\n"


class PortAction(IntEnum):
    """The port-mapping action a SOAP request performs."""

    DELETE_PORT = 0
    ADD_PORT = 1

    @property
    def soap_name(self) -> str:
        return "DeletePortMapping" if self is PortAction.DELETE_PORT else "AddPortMapping"


def _element(tag: str, dt: str, value: object) -> str:
    return f'<{tag} {_DT} dt:dt="{dt}">{value}</{tag}>'


def _host(host: str, port: int | str) -> str:
    return f"Host: {host}:{port}"


def make_post_header(control_url: str, host: str, port: int | str,
                     content_length: int, action: PortAction | int) -> str:
    """Return the HTTP POST header for a port-mapping SOAP request."""
    action = PortAction(action)
    return (
        f"POST {control_url} HTTP/1.1\r\n"
        'Content-Type: text/xml; charset="utf-8"\r\n'
        f'SOAPAction: "{_SERVICE}#{action.soap_name}"'
        f"\r\nUser-Agent: {_USER_AGENT}\r\n"
        f"{_host(host, port)}"
        f"\r\nContent-Length: {content_length}"
        f"{_TRAILER}"
    )


def make_get_header(location: str, host: str, port: int | str) -> str:
    """Return the HTTP GET request that fetches the device description."""
    return (
        f"GET {location} HTTP/1.1\r\n"
        "Accept: text/xml, application/xml\r\n"
        f"User-Agent: {_USER_AGENT}\r\n"
        f"{_host(host, port)}"
        f"{_TRAILER}"
    )


def _dotted(address: str | Sequence[int]) -> str:
    if isinstance(address, str):
        return address
    octets = list(address)
    if len(octets) != 4 or not all(0 <= o <= 255 for o in octets):
        raise ValueError("an IPv4 address has four octets in 0..255")
    return ".".join(str(o) for o in octets)


def make_subscribe(event_sub_url: str, host: str, port: int | str,
                   callback_ip: str | Sequence[int], listen_port: int) -> str:
    """Return the GENA SUBSCRIBE request for eventing on ``listen_port``."""
    return (
        f"SUBSCRIBE {event_sub_url} HTTP/1.1\r\n"
        f"{_host(host, port)}"
        f"\r\nUSER-AGENT: {_SUBSCRIBE_USER_AGENT}\r\n"
        f"CALLBACK: <http://{_dotted(callback_ip)}:{listen_port}/>"
        "\r\nNT: upnp:event\r\nTIMEOUT: Second-1800\r\n\r\n"
    )


def _mapping_common(protocol: str, external_port: int) -> str:
    return (
        f'<NewRemoteHost {_DT} dt:dt="string"></NewRemoteHost>'
        + _element("NewExternalPort", "ui2", external_port)
        + _element("NewProtocol", "string", protocol)
    )


def make_soap_add_control(protocol: str, external_port: int, internal_ip: str,
                          internal_port: int, description: str) -> str:
    """Return the SOAP body of an AddPortMapping request."""
    action = PortAction.ADD_PORT.soap_name
    return (
        SOAP_START
        + f'<m:{action} xmlns:m="{_SERVICE}">'
        + _mapping_common(protocol, external_port)
        + _element("NewInternalPort", "ui2", internal_port)
        + _element("NewInternalClient", "string", internal_ip)
        + _element("NewEnabled", "boolean", 1)
        + _element("NewPortMappingDescription", "string", description)
        + _element("NewLeaseDuration", "ui4", 0)
        + f"</m:{action}>"
        + SOAP_END
    )


def make_soap_delete_control(protocol: str, external_port: int) -> str:
    """Return the SOAP body of a DeletePortMapping request."""
    action = PortAction.DELETE_PORT.soap_name
    return (
        SOAP_START
        + f'<m:{action} xmlns:m="{_SERVICE}">'
        + _mapping_common(protocol, external_port)
        + f"</m:{action}>"
        + SOAP_END
    )