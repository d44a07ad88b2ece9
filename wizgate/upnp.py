"""UPnP Internet Gateway Device client: discovery, eventing and port mapping."""

from __future__ import annotations

import argparse
import logging
import socket
import time
from collections.abc import Sequence

from wizgate.upnp_parse import (
    Location,
    ParseError,
    ServiceURLs,
    UPnPError,
    parse_add_port,
    parse_delete_port,
    parse_description,
    parse_eventing,
    parse_http,
    parse_ssdp,
)
from wizgate.upnp_xml import (
    PortAction,
    make_get_header,
    make_post_header,
    make_soap_add_control,
    make_soap_delete_control,
    make_subscribe,
)

__all__ = ["IGDClient", "EventListener", "main"]

logger = logging.getLogger(__name__)

SSDP_ADDRESS = ("239.255.255.250", 1900)
PORT_SSDP = 1901
PORT_UPNP_EVENTING = 5002
RECV_BUFFER_SIZE = 4096
DEFAULT_TIMEOUT = 3.0

SSDP_REQUEST = (
    b"M-SEARCH * HTTP/1.1\r\n"
    b"Host:239.255.255.250:1900\r\n"
    b"ST:urn:schemas-upnp-org:device:InternetGatewayDevice:1\r\n"
    b'Man:"ssdp:discover"\r\n'
    b"MX:3\r\n"
    b"\r\n"
)
HTTP_OK = b"HTTP/1.1 200 OK\r\n\r\n"


def _content_length(head: bytes) -> int | None:
    for line in head.split(b"\r\n")[1:]:
        name, sep, value = line.partition(b":")
        if sep and name.strip().lower() == b"content-length":
            try:
                return int(value.strip())
            except ValueError:
                return None
    return None


def _read_message(sock: socket.socket, timeout: float | None) -> bytes:
    """Read one HTTP message: up to Content-Length, connection close or timeout."""
    deadline = None if timeout is None else time.monotonic() + timeout
    data = b""
    expected: int | None = None
    while expected is None or len(data) < expected:
        remaining = None if deadline is None else deadline - time.monotonic()
        if remaining is not None and remaining <= 0:
            break
        sock.settimeout(remaining)
        try:
            chunk = sock.recv(RECV_BUFFER_SIZE)
        except socket.timeout:
            break
        if not chunk:
            break
        data += chunk
        if expected is None:
            head_end = data.find(b"\r\n\r\n")
            if head_end >= 0:
                length = _content_length(data[:head_end])
                if length is not None:
                    expected = head_end + 4 + length
    if not data:
        raise TimeoutError("no reply received")
    return data


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class IGDClient:
    """Talks to the Internet Gateway Device found by SSDP discovery.

    The steps run in order: :meth:`discover`, then :meth:`get_description`,
    then eventing and port mapping. Calling a step too early raises
    RuntimeError; a missing reply raises TimeoutError.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self.ssdp_address: tuple[str, int] = SSDP_ADDRESS
        self.ssdp_local_port = PORT_SSDP
        self.location: Location | None = None
        self.services: ServiceURLs | None = None

    def _require_location(self) -> Location:
        if self.location is None:
            raise RuntimeError("no gateway discovered yet")
        return self.location

    def _require_services(self) -> ServiceURLs:
        if self.services is None:
            raise RuntimeError("gateway description has not been fetched")
        return self.services

    def discover(self) -> Location:
        """Send an SSDP search and return the description location of the gateway."""
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", self.ssdp_local_port))
            sock.sendto(SSDP_REQUEST, self.ssdp_address)
            deadline = time.monotonic() + self.timeout
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("no SSDP reply received")
                sock.settimeout(remaining)
                try:
                    data, _peer = sock.recvfrom(RECV_BUFFER_SIZE)
                except socket.timeout:
                    continue
                if data:
                    break
        location = parse_ssdp(_decode(data))
        self.location = location
        self.services = None
        return location

    def _exchange(self, request: str) -> str:
        location = self._require_location()
        logger.debug("%s", request)
        with socket.create_connection((location.host, location.port),
                                      timeout=self.timeout) as sock:
            sock.sendall(request.encode("utf-8"))
            reply = _decode(_read_message(sock, self.timeout))
        logger.debug("ReceiveData\n%s", reply)
        return reply

    def get_description(self) -> ServiceURLs:
        """Fetch the device description and return the WANIPConnection URLs."""
        location = self._require_location()
        reply = self._exchange(make_get_header(location.path, location.host, location.port))
        services = parse_description(reply)
        self.services = services
        return services

    def subscribe(self, callback_ip: str | Sequence[int],
                  listen_port: int = PORT_UPNP_EVENTING) -> None:
        """Subscribe to gateway events delivered to ``callback_ip:listen_port``."""
        services = self._require_services()
        location = self._require_location()
        request = make_subscribe(services.event_sub_url, location.host, location.port,
                                 callback_ip, listen_port)
        parse_http(self._exchange(request))

    def _post(self, body: str, action: PortAction) -> str:
        services = self._require_services()
        location = self._require_location()
        header = make_post_header(services.control_url, location.host, location.port,
                                  len(body.encode("utf-8")), action)
        return self._exchange(header + body)

    def add_port(self, protocol: str, external_port: int, internal_ip: str,
                 internal_port: int, description: str) -> None:
        """Ask the gateway to forward ``external_port`` to ``internal_ip:internal_port``."""
        body = make_soap_add_control(protocol, external_port, internal_ip,
                                     internal_port, description)
        parse_add_port(self._post(body, PortAction.ADD_PORT))

    def delete_port(self, protocol: str, external_port: int) -> None:
        """Ask the gateway to remove the mapping of ``external_port``."""
        body = make_soap_delete_control(protocol, external_port)
        parse_delete_port(self._post(body, PortAction.DELETE_PORT))


class EventListener:
    """TCP listener that acknowledges and decodes gateway event notifications."""

    def __init__(self, host: str = "0.0.0.0", port: int = PORT_UPNP_EVENTING) -> None:
        self._sock = socket.create_server((host, port))
        self.read_timeout = DEFAULT_TIMEOUT

    @property
    def port(self) -> int:
        """The TCP port the listener is bound to."""
        return self._sock.getsockname()[1]

    def handle_once(self, timeout: float | None = None) -> dict[str, str] | None:
        """Serve one notification and return its state variables.

        Returns None when no connection or no data arrives in time.
        """
        self._sock.settimeout(timeout)
        try:
            conn, _peer = self._sock.accept()
        except socket.timeout:
            return None
        with conn:
            try:
                data = _read_message(conn, self.read_timeout)
            except TimeoutError:
                return None
            conn.sendall(HTTP_OK)
        events = parse_eventing(_decode(data))
        for name, value in events.items():
            logger.info("Receive Eventing(%s): %s", name, value)
        return events

    def close(self) -> None:
        """Release the listening socket."""
        self._sock.close()

    def __enter__(self) -> EventListener:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _local_ip_towards(host: str) -> str:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect((host, 9))
        return sock.getsockname()[0]


def main(argv: Sequence[str] | None = None) -> int:
    """Discover the gateway, subscribe to its events and manage port mappings."""
    parser = argparse.ArgumentParser(description="UPnP Internet Gateway Device client.")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    parser.add_argument("--attempts", type=int, default=0,
                        help="SSDP attempts before giving up (0: keep trying)")
    parser.add_argument("--callback-ip", help="address the gateway sends events to")
    parser.add_argument("--event-port", type=int, default=PORT_UPNP_EVENTING)
    parser.add_argument("--add", nargs=5,
                        metavar=("PROTOCOL", "EXTERNAL_PORT", "INTERNAL_IP",
                                 "INTERNAL_PORT", "DESCRIPTION"))
    parser.add_argument("--delete", nargs=2, metavar=("PROTOCOL", "EXTERNAL_PORT"))
    parser.add_argument("--listen", action="store_true", help="serve event notifications")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    client = IGDClient(args.timeout)
    attempt = 0
    while True:
        attempt += 1
        print("Send SSDP..")
        try:
            location = client.discover()
            break
        except (TimeoutError, ParseError) as exc:
            if args.attempts and attempt >= args.attempts:
                print(f"SSDP failed: {exc}")
                return 1

    try:
        client.get_description()
        print("GetDescription Success!!")
    except (OSError, ParseError, RuntimeError) as exc:
        print(f"GetDescription Fail!! {exc}")

    callback_ip = args.callback_ip or _local_ip_towards(location.host)
    try:
        client.subscribe(callback_ip, args.event_port)
        print("SetEventing Success!!")
    except (OSError, ParseError, RuntimeError) as exc:
        print(f"SetEventing Fail!! {exc}")

    status = 0
    if args.add:
        protocol, external, internal_ip, internal, description = args.add
        try:
            client.add_port(protocol, int(external), internal_ip, int(internal), description)
            print("AddPort Success!!")
        except (OSError, ParseError, RuntimeError, UPnPError) as exc:
            print(f"AddPort Fail!! {exc}")
            status = 1
    if args.delete:
        protocol, external = args.delete
        try:
            client.delete_port(protocol, int(external))
            print("DeletePort Success!!")
        except (OSError, ParseError, RuntimeError, UPnPError) as exc:
            print(f"DeletePort Fail!! {exc}")
            status = 1

    if args.listen:
        with EventListener(port=args.event_port) as listener:
            try:
                while True:
                    listener.handle_once(1.0)
            except KeyboardInterrupt:
                pass
    return status