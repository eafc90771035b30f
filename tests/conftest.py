"""Shared fixtures for the discovery test-suite."""
from unittest.mock import AsyncMock, MagicMock

import pytest

BRIDGE_DESCRIPTION = """<?xml version="1.0" encoding="UTF-8" ?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
<specVersion><major>1</major><minor>0</minor></specVersion>
<URLBase>http://10.0.0.5:80/</URLBase>
<device>
<deviceType>urn:schemas-upnp-org:device:Basic:1</deviceType>
<friendlyName>Philips hue (10.0.0.5)</friendlyName>
<manufacturer>Royal Philips Electronics</manufacturer>
<manufacturerURL>http://www.philips.com</manufacturerURL>
<modelDescription>Philips hue Personal Wireless Lighting</modelDescription>
<modelName>Philips hue bridge 2015</modelName>
<modelNumber>BSB002</modelNumber>
<modelURL>http://www.meethue.com</modelURL>
<serialNumber>001788fffe09a206</serialNumber>
<UDN>uuid:2f402f80-da50-11e1-9b23-00178809a206</UDN>
</device>
</root>
"""


def build_ssdp_response(location_host: str, server: str = "FreeRTOS/7.4.2 UPnP/1.0 IpBridge/1.10.0") -> str:
    return (
        "HTTP/1.1 200 OK\r\n"
        "HOST: 239.255.255.250:1900\r\n"
        "EXT:\r\n"
        "CACHE-CONTROL: max-age=100\r\n"
        f"LOCATION: http://{location_host}:80/description.xml\r\n"
        f"SERVER: {server}\r\n"
        "hue-bridgeid: 001788FFFE09A206\r\n"
        "ST: upnp:rootdevice\r\n"
        "USN: uuid:2f402f80-da50-11e1-9b23-00178809a206::upnp:rootdevice\r\n"
        "\r\n"
    )


def _make_session(status: int = 200, body: str = "", exc: BaseException | None = None) -> MagicMock:
    """A stand-in for aiohttp.ClientSession whose get() serves one canned response."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=body)

    request_ctx = MagicMock()
    request_ctx.__aenter__ = AsyncMock(return_value=response)
    request_ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    if exc is not None:
        session.get = MagicMock(side_effect=exc)
    else:
        session.get = MagicMock(return_value=request_ctx)
    session.closed = False
    return session


@pytest.fixture
def make_session():
    return _make_session


@pytest.fixture
def bridge_description():
    return BRIDGE_DESCRIPTION


@pytest.fixture
def ssdp_response():
    return build_ssdp_response
