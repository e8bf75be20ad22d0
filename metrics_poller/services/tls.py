"""SSL context construction from collector TLS options."""

import ssl
from typing import Optional

from ..config.models import TLSConfig


def build_ssl_context(tls: TLSConfig) -> Optional[ssl.SSLContext]:
    """
    Build an SSL context for the configured CA, client cert and verification mode.

    Args:
        tls: TLS options

    Returns:
        Optional[ssl.SSLContext]: None when no option is set, so the
        transport keeps its default certificate verification

    Raises:
        FileNotFoundError: If a configured file does not exist
        ssl.SSLError: If a certificate or key cannot be loaded
    """
    if not (tls.ca or tls.cert or tls.insecure_skip_verify):
        return None

    context = ssl.create_default_context(cafile=tls.ca)

    if tls.cert:
        context.load_cert_chain(certfile=tls.cert, keyfile=tls.key)

    if tls.insecure_skip_verify:
        # check_hostname must be cleared before verify_mode can drop to CERT_NONE
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context
