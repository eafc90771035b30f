"""
Validation of SSDP search responses.

A genuine bridge answers an M-SEARCH with something like::

    HTTP/1.1 200 OK
    HOST: 239.255.255.250:1900
    EXT:
    CACHE-CONTROL: max-age=100
    LOCATION: http://192.168.178.241:80/description.xml
    SERVER: FreeRTOS/7.4.2 UPnP/1.0 IpBridge/1.10.0
    hue-bridgeid: 001788FFFE09A206
    ST: upnp:rootdevice
    USN: uuid:2f402f80-da50-11e1-9b23-00178809a206::upnp:rootdevice
"""
from urllib.parse import urlsplit

from ..models.bridge import SSDPValidationResult

# Bridges put this token in the SERVER banner.
BRIDGE_SERVER_TOKEN = "ipbridge"


def parse_ssdp_headers(body: str) -> tuple[str, dict[str, str]]:
    """Splits a raw response into its status line and a lower-cased header map.

    The first occurrence of a header wins.
    """
    lines = body.replace("\x00", "").splitlines()
    status_line = ""
    headers: dict[str, str] = {}
    for line in lines:
        if not status_line:
            status_line = line.strip()
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        headers.setdefault(name.strip().lower(), value.strip())
    return status_line, headers


def _is_ok_status(status_line: str) -> bool:
    parts = status_line.split()
    return len(parts) >= 2 and parts[0].upper().startswith("HTTP/") and parts[1] == "200"


def validate_ssdp_response(body: str, origin: str) -> SSDPValidationResult:
    """Decides whether `body`, received from `origin`, comes from a compatible bridge.

    A failing check is reported in the result, never raised.
    """
    status_line, headers = parse_ssdp_headers(body)

    if not _is_ok_status(status_line):
        return SSDPValidationResult(valid=False, reason="Invalid SSDP response header")

    # MUST fields from UPnP Device Architecture 1.1
    if "usn" not in headers or "st" not in headers:
        return SSDPValidationResult(valid=False, reason="Invalid SSDP response: missing USN or ST")

    if BRIDGE_SERVER_TOKEN not in headers.get("server", "").lower():
        return SSDPValidationResult(valid=False, reason="Origin is no hue bridge")

    location = headers.get("location")
    if not location:
        return SSDPValidationResult(valid=False, reason="Missing LOCATION field")

    try:
        location_host = urlsplit(location).hostname
    except ValueError:
        location_host = None
    if location_host != origin:
        return SSDPValidationResult(valid=False, reason="Response and sender mismatch")

    return SSDPValidationResult(valid=True)
