"""
Confirms candidates by fetching their UPnP description and checking the vendor fingerprint.
"""
import aiohttp
import structlog

from ..config import HTTPClientConfig
from ..http_client import request_timeout

logger = structlog.get_logger(__name__)

DESCRIPTION_PATH = "/description.xml"

BRIDGE_FINGERPRINT = (
    "<deviceType>urn:schemas-upnp-org:device:Basic:1</deviceType>",
    "<manufacturer>Royal Philips Electronics</manufacturer>",
    "<modelURL>http://www.meethue.com</modelURL>",
)


def matches_fingerprint(description: str) -> bool:
    return all(marker in description for marker in BRIDGE_FINGERPRINT)


class CandidateConfirmer:
    """
    Decides whether a candidate host is a genuine bridge.
    Unreachable or misbehaving candidates are rejected, not reported as errors.
    """

    def __init__(self, http_config: HTTPClientConfig, session: aiohttp.ClientSession):
        self.http_config = http_config
        self.session = session
        self.logger = logger.bind(service="CandidateConfirmer")

    def description_url(self, address: str) -> str:
        return f"http://{address}{DESCRIPTION_PATH}"

    async def confirm(self, address: str) -> bool:
        log = self.logger.bind(address=address)
        url = self.description_url(address)
        try:
            async with self.session.get(url, timeout=request_timeout(self.http_config)) as response:
                if response.status != 200:
                    log.debug("Candidate rejected: unexpected status", status=response.status)
                    return False
                body = await response.text(errors="replace")
        except TimeoutError:
            log.debug("Candidate rejected: description request timed out")
            return False
        except (aiohttp.ClientError, OSError) as e:
            log.debug("Candidate rejected: description request failed", error_type=type(e).__name__, error=str(e))
            return False

        if not matches_fingerprint(body):
            log.debug("Candidate rejected: fingerprint mismatch")
            return False

        log.info("Candidate confirmed as bridge")
        return True
