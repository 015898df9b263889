"""SSH key-pair generation for machines without a pre-existing key."""

from __future__ import annotations

import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

KEY_SIZE = 2048


def public_key_path(private_key_path: str) -> str:
    return private_key_path + ".pub"


def generate_ssh_key(path: str) -> None:
    """Write a new RSA key pair to *path* and ``<path>.pub``.

    The private key is PEM-encoded and only readable by its owner; the
    public key uses the OpenSSH ``authorized_keys`` format.

    Raises:
        FileExistsError: If a private key already exists at *path*.
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(private_bytes)
    with open(public_key_path(path), "wb") as f:
        f.write(public_bytes + b"\n")


def read_public_key(private_key_path: str) -> str:
    with open(public_key_path(private_key_path)) as f:
        return f.read()
