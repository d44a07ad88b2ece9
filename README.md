# wizgate

Networking tools for a local network. They need nothing outside the standard library:

- **NetBIOS name responder**: answers NetBIOS name queries for one name with
  a configured IPv4 address.
- **Multi-port echo server**: listens on a run of consecutive TCP ports and
  sends back whatever each client sends.
- **UPnP IGD client**: discovers an Internet Gateway Device over SSDP, reads
  its description, subscribes to its events and adds or deletes port mappings
  through SOAP requests.
- Helpers: an MD5 implementation and address, number and checksum utilities.

## Installation

```
pip install wizgate
```

You need Python 3.10 or later.

## Commands

### `wizgate-netbios`

```
wizgate-netbios [--name NAME] [--address ADDRESS] [--port PORT]
```

This command listens on UDP (port 137 by default). It answers queries for `--name` (default
`W55RP20`) with a positive response that gives `--address` (default
`192.168.11.2`). It ignores other names and packets that are not name queries. On most
systems port 137 needs elevated privileges.

### `wizgate-echo`

```
wizgate-echo [--host HOST] [--port PORT] [--count COUNT]
```

This command opens `--count` listening ports (default 8) starting at `--port` (default 8000). It
echoes every message back to its sender. Each port serves one client at a
time. Further connections to that port wait until the client disconnects.

### `wizgate-upnp`

```
wizgate-upnp [--timeout SECONDS] [--attempts N] [--callback-ip IP]
             [--event-port PORT]
             [--add PROTOCOL EXTERNAL_PORT INTERNAL_IP INTERNAL_PORT DESCRIPTION]
             [--delete PROTOCOL EXTERNAL_PORT] [--listen]
```

The command runs these steps in order:

1. It sends SSDP searches from local UDP port 1901 until a gateway answers.
   With `--attempts` it gives up after that many tries.
2. It fetches the device description.
3. It subscribes to events. The callback goes to `--callback-ip`, or to the local address
   that faces the gateway, on `--event-port` (default 5002).
4. It adds or deletes the requested mapping.
5. With `--listen`, it then accepts event notifications until interrupted.

The command exits with status 1 in two cases: discovery gives up, or a port-mapping request fails.

## Library use

### MD5

```python
from wizgate.md5 import MD5, md5

h = MD5()
h.update(b"ab")
h.update(b"c")
print(h.hexdigest())   # 900150983cd24fb0d6963f7d28e17f72
print(md5(b"abc").hex())
```

### Address and number helpers

```python
from wizgate.netutil import inet_addr, inet_ntoa, swaps, verify_ip_address

addr = inet_addr("192.168.0.1")        # 0xC0A80001
print(inet_ntoa(addr))                 # 192.168.0.1
print(hex(swaps(0x1234)))              # 0x3412
print(verify_ip_address("10.0.0.1"))   # (10, 0, 0, 1); ValueError if invalid
```

`wizgate.netutil` also provides these helpers:

- `c2d`, `atoi` and `valid_atoi`: digit and number parsing. Octets may have a `0x` prefix in the address helpers.
- `itoa2`: a right-aligned decimal.
- `swapl`: byte swapping for 32-bit values.
- `mid`: the text between two markers.
- `checksum`: a 16-bit one's complement checksum.
- `check_dest_in_local`

### NetBIOS

```python
from wizgate.netbios import NameQuery, NetbiosResponder, build_response, decode_name, encode_name

query = NameQuery.parse(packet)          # ValueError if not a name query
reply = build_response(query, "192.168.11.2")
```

`encode_name` and `decode_name` convert between a name and its first-level
encoding. `NetbiosResponder(name, address, port)` binds a UDP socket. Its
methods and property are:

- `handle(packet)`: returns the response bytes, or `None`.
- `serve_forever()`: answers queries until `close()` is called.
- `port`: gives the bound port.

The responder can also be used as a context manager.

### Echo server

```python
from wizgate.echo import MultiSocketEchoServer

with MultiSocketEchoServer("127.0.0.1", base_port=0, count=4) as server:
    print(server.ports)
    for echo in server.poll(1.0):
        print(echo.slot, echo.peer, echo.data)
```

With `base_port=0` every slot gets an ephemeral port. `poll(timeout)`
serves whatever is ready and returns the `Echo` records. `serve_forever()`
loops until `close()` is called.

### UPnP

```python
from wizgate.upnp import IGDClient, EventListener
from wizgate.upnp_parse import ParseError, UPnPError

client = IGDClient(timeout=3.0)
location = client.discover()             # Location(url, host, port, path)
services = client.get_description()      # ServiceURLs(control_url, event_sub_url)
client.add_port("TCP", 8080, "192.168.1.10", 80, "web")
client.delete_port("TCP", 8080)
```

The client methods raise exceptions as follows:

- `RuntimeError`: a step is called before the steps it depends on.
- `TimeoutError`: no reply arrives.
- `ParseError`: a reply cannot be read.
- `UPnPError`: the gateway returns a SOAP fault. It carries `code`, `fault` and `description`.

`EventListener(host, port).handle_once(timeout)` accepts one notification and
acknowledges it. It returns the reported state variables as a dict, or
`None` if nothing arrives in time.

The message builders are in `wizgate.upnp_xml`:

- `make_get_header`
- `make_subscribe`
- `make_post_header` (with `PortAction`)
- `make_soap_add_control`
- `make_soap_delete_control`

The reply parsers are in `wizgate.upnp_parse`:

- `parse_http`
- `parse_ssdp`
- `parse_description`
- `parse_eventing`
- `parse_error`
- `parse_add_port`
- `parse_delete_port`

## What it does not do

- There is no PPPoE or PPP client. `wizgate.md5` is only a hashing routine.
- The UPnP client does not query existing mappings or the external address.
  It reports that address only when it appears in an event notification.
- The NetBIOS responder answers name queries only. It does not register
  names or defend them.

## Running the tests

```
pip install "wizgate[test]"
pytest
```