"""Discovery of the address other hosts can use to reach this server."""

import logging
import socket

from fileserver.domain.correlation_id import CorrelationLoggerAdapter

NETWORK_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.network"), {}
)

FALLBACK_ADDRESS = "localhost"
# Any routable address works; connecting a UDP socket sends no packets.
PROBE_ADDRESS = ("10.254.254.254", 1)


def get_local_ip() -> str:
    """Return the first non-loopback IPv4 address, or ``localhost``."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        probe.connect(PROBE_ADDRESS)
        address = probe.getsockname()[0]
    except OSError as error:
        if NETWORK_LOGGER.logger.isEnabledFor(logging.DEBUG):
            NETWORK_LOGGER.debug(
                "Network address discovery failed",
                extra={"event": "local_ip_unavailable", "error": str(error)},
            )
        return FALLBACK_ADDRESS
    finally:
        probe.close()
    if address.startswith("127.") or address == "0.0.0.0":
        return FALLBACK_ADDRESS
    return address
