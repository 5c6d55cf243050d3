from __future__ import annotations

import logging
import ssl
from typing import Union
from urllib.parse import urlparse

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from federation.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

CertificateLike = Union[x509.Certificate, str, bytes]

def _host_port(url: str, port: int) -> tuple[str, int]:
    p = urlparse(url if "://" in url else f"https://{url}")
    if not p.hostname:
        raise ConfigurationError(f"Cannot fetch a certificate without a host: {url!r}")
    return p.hostname, p.port or port

def _load(certificate: CertificateLike) -> x509.Certificate:
    if isinstance(certificate, x509.Certificate):
        return certificate
    if isinstance(certificate, str):
        certificate = certificate.encode("ascii")
    if certificate.lstrip().startswith(b"-----BEGIN"):
        return x509.load_pem_x509_certificate(certificate)
    return x509.load_der_x509_certificate(certificate)

def fetch_certificate(url: str, *, port: int = 443, timeout: float = DEFAULT_TIMEOUT) -> x509.Certificate:
    """Leaf certificate served by the host of ``url``.

    Network and TLS failures propagate as OSError (ssl.SSLError, timeouts,
    connection refused).
    """
    host, port = _host_port(url, port)
    logger.info("fetch_certificate host=%s port=%d", host, port)
    pem = ssl.get_server_certificate((host, port), timeout=timeout)
    return x509.load_pem_x509_certificate(pem.encode("ascii"))

def sha1_fingerprint(certificate: CertificateLike) -> str:
    """Lowercase hex SHA-1 of the certificate's DER encoding (IAM thumbprint format)."""
    return _load(certificate).fingerprint(hashes.SHA1()).hex()

def fetch_thumbprint(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> str:
    thumbprint = sha1_fingerprint(fetch_certificate(url, timeout=timeout))
    logger.info("thumbprint url=%s thumbprint=%s", url, thumbprint)
    return thumbprint
