# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Certificate authority helpers for cluster mutual TLS.

The founding node of a cluster mints a self-signed CA and shares it with
joining nodes through the gossip join handshake. The CA travels as a CAPEM
bundle (certificate and private key, both PEM encoded) marshalled to JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from beskar.exceptions import CryptoError

PrivateKey = ec.EllipticCurvePrivateKey


@dataclass
class CAPEM:
    """A PEM encoded CA certificate and its private key."""
    cert: bytes
    key: bytes


def add_years(moment: datetime, years: int) -> datetime:
    """Add calendar years; Feb 29 rolls over to Mar 1 in non-leap years."""
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, month=3, day=1)


def generate_ca(
    common_name: str,
    not_after: datetime,
) -> Tuple[x509.Certificate, PrivateKey]:
    """Generate a self-signed certificate authority with an ECDSA P-256 key.

    Args:
        common_name: Subject and issuer common name
        not_after: Expiry of the certificate

    Returns:
        The CA certificate and its private key

    Raises:
        CryptoError: If key generation or signing fails
    """
    try:
        key = ec.generate_private_key(ec.SECP256R1())
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        now = datetime.now(timezone.utc)

        cert = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=1))
            .not_valid_after(not_after)
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
                critical=False,
            )
            .sign(key, hashes.SHA256())
        )
    except (ValueError, TypeError) as e:
        raise CryptoError(f"while generating CA: {e}") from e

    return cert, key


def encode_ca_pem(cert: x509.Certificate, key: PrivateKey) -> CAPEM:
    """PEM encode a certificate and its (unencrypted, PKCS#8) private key."""
    return CAPEM(
        cert=cert.public_bytes(serialization.Encoding.PEM),
        key=key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ),
    )


def marshal_ca_pem(ca: CAPEM) -> bytes:
    """Serialize a CAPEM bundle for transport as gossip local state."""
    return json.dumps(
        {"cert": ca.cert.decode("ascii"), "key": ca.key.decode("ascii")}
    ).encode("utf-8")


def unmarshal_ca_pem(data: bytes) -> CAPEM:
    """Deserialize a CAPEM bundle produced by marshal_ca_pem.

    Raises:
        CryptoError: If the payload is not a CAPEM bundle
    """
    try:
        obj = json.loads(data.decode("utf-8"))
        return CAPEM(cert=obj["cert"].encode("ascii"), key=obj["key"].encode("ascii"))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise CryptoError(f"invalid CA bundle: {e}") from e


def load_ca(ca: CAPEM) -> Tuple[x509.Certificate, PrivateKey]:
    """Load the certificate and private key from a CAPEM bundle.

    Raises:
        CryptoError: If either PEM block cannot be loaded
    """
    try:
        cert = x509.load_pem_x509_certificate(ca.cert)
        key = serialization.load_pem_private_key(ca.key, password=None)
    except (ValueError, TypeError) as e:
        raise CryptoError(f"invalid CA PEM data: {e}") from e
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise CryptoError(f"unsupported CA key type: {type(key).__name__}")
    return cert, key
