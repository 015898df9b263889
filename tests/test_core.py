"""Tests for core infrastructure modules."""

from unittest.mock import patch, MagicMock
import logging
import pydantic
import pytest

from ovh_machine.base.config import MachineOptions, OVHConfig, validate_config
from ovh_machine.base.driver import MachineInfo
from ovh_machine.base.exceptions import (
    InstanceTimeoutError,
    MachineDriverError,
    NotFoundError,
    RemoteError,
)
from ovh_machine.base.logger import MachineLogger, StructuredFormatter
from ovh_machine.base.state import State
from ovh_machine.base.wait import wait_for_specific_or_error


# ══════════════════════════════════════════════════════════════════════
# Config
# ══════════════════════════════════════════════════════════════════════

class TestOVHConfig:
    def test_explicit_values(self):
        cfg = OVHConfig(
            application_key="ak",
            application_secret="as",
            consumer_key="ck",
            endpoint="ovh-ca",
        )
        assert cfg.application_key == "ak"
        assert cfg.endpoint == "ovh-ca"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("OVH_APPLICATION_KEY", "env_ak")
        monkeypatch.setenv("OVH_APPLICATION_SECRET", "env_as")
        monkeypatch.setenv("OVH_CONSUMER_KEY", "env_ck")
        monkeypatch.setenv("OVH_ENDPOINT", "ovh-us")
        cfg = OVHConfig()
        assert cfg.application_key == "env_ak"
        assert cfg.consumer_key == "env_ck"
        assert cfg.endpoint == "ovh-us"

    def test_explicit_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("OVH_APPLICATION_KEY", "env_ak")
        cfg = OVHConfig(application_key="flag_ak")
        assert cfg.application_key == "flag_ak"

    def test_unset_left_to_sdk(self, monkeypatch):
        for var in ("OVH_APPLICATION_KEY", "OVH_APPLICATION_SECRET",
                    "OVH_CONSUMER_KEY", "OVH_ENDPOINT"):
            monkeypatch.delenv(var, raising=False)
        cfg = OVHConfig()
        assert cfg.application_key is None
        assert cfg.endpoint is None


class TestMachineOptions:
    def test_defaults(self):
        opts = MachineOptions()
        assert opts.region == "GRA1"
        assert opts.flavor == "b2-7"
        assert opts.image == "Ubuntu 20.04"
        assert opts.ssh_user == "ubuntu"
        assert opts.billing_period == "hourly"
        assert opts.private_network == ""

    def test_unknown_option_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            MachineOptions(zone="gra")


class TestValidateConfig:
    def test_ovh(self):
        cfg = validate_config("ovh", {"application_key": "k"})
        assert isinstance(cfg, OVHConfig)
        assert cfg.application_key == "k"

    def test_unknown_driver(self):
        with pytest.raises(ValueError, match="No config model"):
            validate_config("azure", {"key": "val"})


# ══════════════════════════════════════════════════════════════════════
# Machine info
# ══════════════════════════════════════════════════════════════════════

class TestMachineInfo:
    def test_resolve_store_path(self):
        info = MachineInfo(machine_name="web-1", store_path="/store")
        assert info.resolve_store_path("id_rsa") == "/store/machines/web-1/id_rsa"

    def test_defaults(self):
        info = MachineInfo(machine_name="web-1", store_path="/store")
        assert info.ssh_port == 22
        assert info.ip_address == ""


# ══════════════════════════════════════════════════════════════════════
# Wait
# ══════════════════════════════════════════════════════════════════════

class TestWaitForSpecificOrError:
    @patch("ovh_machine.base.wait.time.sleep")
    def test_immediate_success(self, mock_sleep):
        wait_for_specific_or_error(lambda: True, max_attempts=3, wait_interval=4)
        mock_sleep.assert_not_called()

    @patch("ovh_machine.base.wait.time.sleep")
    def test_succeeds_after_retries(self, mock_sleep):
        check = MagicMock(side_effect=[False, False, True])
        wait_for_specific_or_error(check, max_attempts=5, wait_interval=4)
        assert check.call_count == 3
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(4)

    @patch("ovh_machine.base.wait.time.sleep")
    def test_budget_exhausted(self, mock_sleep):
        check = MagicMock(return_value=False)
        with pytest.raises(InstanceTimeoutError, match="Maximum number of retries"):
            wait_for_specific_or_error(check, max_attempts=3, wait_interval=1)
        assert check.call_count == 3

    @patch("ovh_machine.base.wait.time.sleep")
    def test_timeout_is_builtin_timeout(self, mock_sleep):
        with pytest.raises(TimeoutError):
            wait_for_specific_or_error(lambda: False, max_attempts=1, wait_interval=1)

    @patch("ovh_machine.base.wait.time.sleep")
    def test_error_stops_immediately(self, mock_sleep):
        check = MagicMock(side_effect=[False, ValueError("broken")])
        with pytest.raises(ValueError):
            wait_for_specific_or_error(check, max_attempts=10, wait_interval=1)
        assert check.call_count == 2
        assert mock_sleep.call_count == 1


# ══════════════════════════════════════════════════════════════════════
# Exceptions & state
# ══════════════════════════════════════════════════════════════════════

class TestExceptions:
    def test_remote_error_carries_status(self):
        err = RemoteError("boom", status_code=500)
        assert err.status_code == 500
        assert "HTTP 500" in str(err)
        assert isinstance(err, MachineDriverError)

    def test_remote_error_without_status(self):
        assert str(RemoteError("network down")) == "network down"

    def test_not_found_alternatives(self):
        err = NotFoundError("nope", alternatives=["a", "b"])
        assert err.alternatives == ["a", "b"]
        assert NotFoundError("nope").alternatives == []


class TestState:
    def test_str(self):
        assert str(State.RUNNING) == "Running"
        assert str(State.NONE) == ""


# ══════════════════════════════════════════════════════════════════════
# Logger
# ══════════════════════════════════════════════════════════════════════

class TestMachineLogger:
    def test_log_operation(self, capfd):
        logger = MachineLogger("test_md")
        logger.logger.setLevel(logging.DEBUG)
        logger.info("test message", driver="ovh", machine="web-1", operation="create")
        captured = capfd.readouterr()
        assert "test message" in captured.err
        assert "web-1" in captured.err

    def test_structured_formatter(self):
        fmt = StructuredFormatter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="hi", args=(), exc_info=None,
        )
        record.driver = "ovh"
        record.request_id = "abc"
        record.details = {"instance_id": "i-1"}
        output = fmt.format(record)
        assert '"driver": "ovh"' in output
        assert '"request_id": "abc"' in output
        assert '"instance_id": "i-1"' in output
