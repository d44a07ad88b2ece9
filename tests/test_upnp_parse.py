import pytest

from wizgate.upnp_parse import (
    Location,
    ParseError,
    ServiceURLs,
    UPnPError,
    parse_add_port,
    parse_delete_port,
    parse_description,
    parse_error,
    parse_eventing,
    parse_http,
    parse_ssdp,
)

SERVICE = "urn:schemas-upnp-org:service:WANIPConnection:1"

SSDP_REPLY = (
    "HTTP/1.1 200 OK\r\n"
    "CACHE-CONTROL: max-age=120\r\n"
    "LOCATION: http://192.168.0.1:3121/etc/linuxigd/gatedesc.xml\r\n"
    "ST: urn:schemas-upnp-org:device:InternetGatewayDevice:1\r\n\r\n"
)

DESCRIPTION = (
    "HTTP/1.1 200 OK\r\n\r\n<root><service>"
    "<serviceType>urn:schemas-upnp-org:service:Layer3Forwarding:1</serviceType>"
    "<controlURL>/l3f.ctl</controlURL><eventSubURL>/l3f.evt</eventSubURL>"
    f"</service><service><serviceType>{SERVICE}</serviceType>"
    "<controlURL>/etc/linuxigd/gateconnSCPD.ctl</controlURL>"
    "<eventSubURL>/etc/linuxigd/gateconnSCPD.evt</eventSubURL>"
    "</service></root>"
)

FAULT = (
    "HTTP/1.1 500 Internal Server Error\r\n\r\n"
    "<s:Fault><faultstring>UPnPError</faultstring><detail>"
    "<errorCode>718</errorCode>"
    "<errorDescription>ConflictInMappingEntry</errorDescription>"
    "</detail></s:Fault>"
)


def test_parse_http_accepts_ok():
    assert parse_http("HTTP/1.1 200 OK\r\n\r\n") is None


def test_parse_http_reports_status_line():
    with pytest.raises(ParseError) as info:
        parse_http("HTTP/1.1 404 Not Found\r\nServer: x\r\n\r\n")
    assert info.value.status_line == "HTTP/1.1 404 Not Found"


def test_parse_ssdp():
    assert parse_ssdp(SSDP_REPLY) == Location(
        url="http://192.168.0.1:3121/etc/linuxigd/gatedesc.xml",
        host="192.168.0.1",
        port=3121,
        path="/etc/linuxigd/gatedesc.xml",
    )


@pytest.mark.parametrize(
    "reply",
    [
        "HTTP/1.1 200 OK\r\nST: x\r\n\r\n",
        "HTTP/1.1 200 OK\r\nLOCATION: ftp://192.168.0.1:21/a\r\n",
        "HTTP/1.1 200 OK\r\nLOCATION: http://192.168.0.1/a\r\n",
        "HTTP/1.1 200 OK\r\nLOCATION: http://192.168.0.1:3121\r\n",
        "HTTP/1.1 500 Error\r\nLOCATION: http://192.168.0.1:3121/a\r\n",
    ],
)
def test_parse_ssdp_errors(reply):
    with pytest.raises(ParseError):
        parse_ssdp(reply)


def test_parse_description_picks_wanip_service():
    assert parse_description(DESCRIPTION) == ServiceURLs(
        control_url="/etc/linuxigd/gateconnSCPD.ctl",
        event_sub_url="/etc/linuxigd/gateconnSCPD.evt",
    )


def test_parse_description_without_service():
    with pytest.raises(ParseError):
        parse_description("HTTP/1.1 200 OK\r\n\r\n<controlURL>/a</controlURL>")


def test_parse_eventing_only_present_fields():
    text = (
        "<e:propertyset><ConnectionStatus>Connected</ConnectionStatus>"
        "<ExternalIPAddress>10.1.2.3</ExternalIPAddress></e:propertyset>"
    )
    assert parse_eventing(text) == {
        "ConnectionStatus": "Connected",
        "ExternalIPAddress": "10.1.2.3",
    }


def test_parse_eventing_empty():
    assert parse_eventing("<nothing/>") == {}


def test_parse_error_fields():
    error = parse_error(FAULT)
    assert error.code == 718
    assert error.fault == "UPnPError"
    assert error.description == "ConflictInMappingEntry"


def test_parse_error_incomplete():
    with pytest.raises(ParseError):
        parse_error("<faultstring>UPnPError</faultstring><errorCode>718</errorCode>")


def test_add_port_success():
    reply = f'HTTP/1.1 200 OK\r\n\r\n<u:AddPortMappingResponse xmlns:u="{SERVICE}"/>'
    assert parse_add_port(reply) is None


def test_delete_port_success():
    reply = f'HTTP/1.1 200 OK\r\n\r\n<u:DeletePortMappingResponse xmlns:u="{SERVICE}"/>'
    assert parse_delete_port(reply) is None


def test_add_port_fault_raises_upnp_error():
    with pytest.raises(UPnPError) as info:
        parse_add_port(FAULT)
    assert info.value.code == 718


def test_delete_port_wrong_response_is_fault():
    reply = f'<u:AddPortMappingResponse xmlns:u="{SERVICE}"/>' + FAULT
    with pytest.raises(UPnPError):
        parse_delete_port(reply)


def test_delete_port_unparseable():
    with pytest.raises(ParseError):
        parse_delete_port("HTTP/1.1 200 OK\r\n\r\n")