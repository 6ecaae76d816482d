# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
import pytest
from pyVmomi import vim

from mfd_vsphere.exceptions import DeadlineExceeded, ESXiAPIInvalidLogin, OperationCancelled, VSphereRuntimeError
from mfd_vsphere.host_api import ESXiHostAPI
from mfd_vsphere.poller import ProbeState


@pytest.fixture()
def api_service(mocker):
    service = mocker.Mock()
    service.RetrieveServiceContent.return_value.about.apiVersion = "8.0.3.0"
    return service


@pytest.fixture()
def smart_connect(mocker):
    return mocker.patch("mfd_vsphere.host_api.connect.SmartConnect")


@pytest.fixture()
def disconnect(mocker):
    return mocker.patch("mfd_vsphere.host_api.connect.Disconnect")


class TestESXiHostApi:
    def test_repr(self, host_api):
        assert f"{host_api}" == "ESXiHostAPI('172.31.0.56')"

    def test_fingerprint(self, host_api_with_cert):
        assert host_api_with_cert.fingerprint == "FE:32:B8:57:D5:6D:75:FC:1E:75:F6:97:2D:7F:27:A0:79:55:22:01"

    def test_version(self, mocker, host_api_with_cert):
        host_api_with_cert._ESXiHostAPI__content.about = mocker.Mock(apiVersion="8.0.3.0")
        assert host_api_with_cert.version.major == 8

    def test_invalid_login(self, smart_connect):
        api = ESXiHostAPI("172.31.0.57", "root", "wrong")
        smart_connect.side_effect = vim.fault.InvalidLogin(msg="Cannot complete login due to an incorrect user name")
        with pytest.raises(ESXiAPIInvalidLogin):
            api.version


class TestProbeLogin:
    def test_ready(self, host_api, smart_connect, disconnect, api_service):
        smart_connect.return_value = api_service
        result = host_api.probe_login()
        assert result.state is ProbeState.READY
        assert result.payload == "8.0.3.0"
        disconnect.assert_called_once_with(api_service)

    def test_invalid_login_is_fatal(self, host_api, smart_connect, disconnect):
        smart_connect.side_effect = vim.fault.InvalidLogin(msg="Cannot complete login")
        result = host_api.probe_login()
        assert result.state is ProbeState.FATAL
        assert isinstance(result.error, ESXiAPIInvalidLogin)
        disconnect.assert_not_called()

    @pytest.mark.parametrize("error", [ConnectionRefusedError("refused"), TimeoutError("timed out")])
    def test_unreachable_is_not_ready(self, host_api, smart_connect, error):
        smart_connect.side_effect = error
        result = host_api.probe_login()
        assert result.state is ProbeState.NOT_READY
        assert type(error).__name__ in result.reason

    def test_not_vim_server_is_not_ready(self, host_api, smart_connect):
        smart_connect.side_effect = Exception("172.31.0.56:443 is down or is not a VIM server")
        result = host_api.probe_login()
        assert result.state is ProbeState.NOT_READY
        assert "is not a VIM server" in result.reason

    def test_other_exception_propagates(self, host_api, smart_connect):
        smart_connect.side_effect = Exception("unexpected")
        with pytest.raises(Exception, match="unexpected"):
            host_api.probe_login()

    def test_down(self, host_api, smart_connect):
        smart_connect.side_effect = ConnectionRefusedError("refused")
        assert host_api.probe_down().state is ProbeState.READY

    def test_down_still_answering(self, host_api, smart_connect, disconnect, api_service):
        smart_connect.return_value = api_service
        assert host_api.probe_down().state is ProbeState.NOT_READY

    def test_down_invalid_login_is_fatal(self, host_api, smart_connect):
        smart_connect.side_effect = vim.fault.InvalidLogin(msg="Cannot complete login")
        assert host_api.probe_down().state is ProbeState.FATAL


class TestWaitForBoot:
    def test_boot(self, host_api, smart_connect, disconnect, api_service, clock):
        smart_connect.side_effect = [ConnectionRefusedError(), ConnectionRefusedError(), api_service]
        assert host_api.wait_for_boot(timeout=60, interval=10, clock=clock, sleeper=clock.sleep) == "8.0.3.0"
        assert clock.sleeps == [10, 10]

    def test_boot_while_hostd_starting(self, host_api, smart_connect, disconnect, api_service, clock):
        not_vim = Exception("172.31.0.56:443 is down or is not a VIM server")
        smart_connect.side_effect = [not_vim, not_vim, api_service]
        assert host_api.wait_for_boot(timeout=300, interval=15, clock=clock, sleeper=clock.sleep) == "8.0.3.0"
        assert clock.sleeps == [15, 15]

    def test_boot_timeout(self, host_api, smart_connect, clock):
        smart_connect.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(DeadlineExceeded) as exc_info:
            host_api.wait_for_boot(timeout=30, interval=10, clock=clock, sleeper=clock.sleep)
        assert "172.31.0.56" in f"{exc_info.value}"
        assert smart_connect.call_count == 3

    def test_boot_invalid_login(self, host_api, smart_connect, clock):
        smart_connect.side_effect = vim.fault.InvalidLogin(msg="Cannot complete login")
        with pytest.raises(ESXiAPIInvalidLogin):
            host_api.wait_for_boot(timeout=60, interval=10, clock=clock, sleeper=clock.sleep)
        assert smart_connect.call_count == 1
        assert clock.sleeps == []


class TestReboot:
    def test_reboot_and_wait(self, mocker, host_api, smart_connect, disconnect, api_service, clock):
        get_host = mocker.patch.object(host_api, "get_host")
        smart_connect.side_effect = [api_service, ConnectionRefusedError(), ConnectionRefusedError(), api_service]

        version = host_api.reboot_and_wait(timeout=60, interval=10, down_timeout=30, clock=clock, sleeper=clock.sleep)

        assert version == "8.0.3.0"
        get_host.return_value.RebootHost_Task.assert_called_once_with(force=True)
        assert smart_connect.call_count == 4
        assert clock.sleeps == [10, 10]

    def test_reboot_and_wait_hostd_stopping(self, mocker, host_api, smart_connect, disconnect, api_service, clock):
        mocker.patch.object(host_api, "get_host")
        not_vim = Exception("172.31.0.56:443 is down or is not a VIM server")
        smart_connect.side_effect = [not_vim, api_service]

        assert host_api.reboot_and_wait(timeout=60, interval=10, down_timeout=30, clock=clock, sleeper=clock.sleep)
        assert smart_connect.call_count == 2

    def test_reboot_declined(self, mocker, host_api):
        get_host = mocker.patch.object(host_api, "get_host")
        with pytest.raises(OperationCancelled):
            host_api.reboot(confirm=lambda message: False)
        get_host.assert_not_called()

    def test_reboot_rejected(self, mocker, host_api):
        get_host = mocker.patch.object(host_api, "get_host")
        get_host.return_value.RebootHost_Task.side_effect = vim.fault.InvalidState(msg="not in maintenance mode")
        with pytest.raises(VSphereRuntimeError) as exc_info:
            host_api.reboot(force=False)
        assert "not in maintenance mode" in f"{exc_info.value}"
