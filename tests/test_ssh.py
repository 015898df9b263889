"""Tests for SSH key-pair generation."""

import os
import stat
import pytest

from cryptography.hazmat.primitives import serialization

from ovh_machine.ovh.ssh import generate_ssh_key, public_key_path, read_public_key


class TestGenerateSshKey:
    def test_writes_key_pair(self, tmp_path):
        key_file = str(tmp_path / "id_rsa")
        generate_ssh_key(key_file)
        assert os.path.exists(key_file)
        assert os.path.exists(key_file + ".pub")

    def test_private_key_mode(self, tmp_path):
        key_file = str(tmp_path / "id_rsa")
        generate_ssh_key(key_file)
        assert stat.S_IMODE(os.stat(key_file).st_mode) == 0o600

    def test_keys_match(self, tmp_path):
        key_file = str(tmp_path / "id_rsa")
        generate_ssh_key(key_file)
        with open(key_file, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=None)
        expected = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH,
        ).decode()
        assert read_public_key(key_file).strip() == expected
        assert expected.startswith("ssh-rsa ")

    def test_refuses_to_overwrite(self, tmp_path):
        key_file = tmp_path / "id_rsa"
        key_file.write_text("existing")
        with pytest.raises(FileExistsError):
            generate_ssh_key(str(key_file))
        assert key_file.read_text() == "existing"

    def test_public_key_path(self):
        assert public_key_path("/store/id_rsa") == "/store/id_rsa.pub"
