# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
import pytest
from pyVmomi import vim

from mfd_vsphere.exceptions import OperationCancelled, VSphereMatchError, VSphereWrongParameter
from mfd_vsphere.vcenter.exceptions import VCenterOperationError


def make_service(mocker, key, running):
    service = mocker.Mock()
    service.key = key
    service.running = running
    return service


def make_datastore(mocker, name):
    datastore = mocker.Mock()
    datastore.name = name
    return datastore


class TestHost:
    def test_repr(self, standalone_host, cluster_host):
        assert f"{standalone_host}" == "Host('PY-StandaloneHost')"
        assert f"{cluster_host}" == "Host('PY-ClusterHost')"

    def test_cluster(self, standalone_host, cluster_host, cluster):
        assert standalone_host.cluster is None
        assert cluster_host.cluster is cluster

    def test_datastore_by_wildcard(self, mocker, standalone_host, host_content):
        host_content.datastore = [make_datastore(mocker, "datastore1"), make_datastore(mocker, "nfs-iso")]
        assert standalone_host.get_datastore_by_wildcard("datastore*").name == "datastore1"

    def test_datastore_by_wildcard_ambiguous(self, mocker, standalone_host, host_content):
        host_content.datastore = [make_datastore(mocker, "datastore1"), make_datastore(mocker, "datastore2")]
        with pytest.raises(VSphereMatchError):
            standalone_host.get_datastore_by_wildcard("datastore*")

    def test_vswitches(self, standalone_host, network_config):
        assert [vs.name for vs in standalone_host.vswitches] == ["vSwitch0", "vSwitch1"]

    def test_vswitch_by_uplink(self, standalone_host, network_config):
        assert standalone_host.get_vswitch_by_uplink("vmnic1").name == "vSwitch0"
        assert standalone_host.get_vswitch_by_uplink("vmnic2") is None

    def test_physical_nics(self, standalone_host, network_config):
        assert standalone_host.physical_nics == ["vmnic0", "vmnic1", "vmnic2"]


class TestHostNtp:
    @pytest.fixture()
    def services(self, mocker, host_content):
        host_content.configManager.serviceSystem.serviceInfo.service = [
            make_service(mocker, "TSM-SSH", True),
            make_service(mocker, "ntpd", True),
        ]
        return host_content.configManager.serviceSystem

    def test_configure_ntp(self, standalone_host, host_content, services):
        standalone_host.configure_ntp([" 10.0.0.1 ", "pool.ntp.org", ""])

        date_time = host_content.configManager.dateTimeSystem
        config = date_time.UpdateDateTimeConfig.call_args.kwargs["config"]
        assert list(config.ntpConfig.server) == ["10.0.0.1", "pool.ntp.org"]
        services.UpdateServicePolicy.assert_called_once_with(id="ntpd", policy="on")
        services.RestartService.assert_called_once_with(id="ntpd")
        services.StartService.assert_not_called()

    def test_configure_ntp_starts_stopped_service(self, mocker, standalone_host, host_content, services):
        services.serviceInfo.service = [make_service(mocker, "ntpd", False)]
        standalone_host.configure_ntp(["10.0.0.1"])
        services.StartService.assert_called_once_with(id="ntpd")
        services.RestartService.assert_not_called()

    def test_configure_ntp_without_service(self, standalone_host, host_content, services):
        standalone_host.configure_ntp(["10.0.0.1"], start_service=False)
        services.UpdateServicePolicy.assert_not_called()
        services.RestartService.assert_not_called()

    @pytest.mark.parametrize("servers", [[], ["", "  "]])
    def test_configure_ntp_empty(self, standalone_host, host_content, servers):
        with pytest.raises(VSphereWrongParameter):
            standalone_host.configure_ntp(servers)
        host_content.configManager.dateTimeSystem.UpdateDateTimeConfig.assert_not_called()

    def test_configure_ntp_declined(self, standalone_host, host_content, services):
        with pytest.raises(OperationCancelled):
            standalone_host.configure_ntp(["10.0.0.1"], confirm=lambda message: False)
        host_content.configManager.dateTimeSystem.UpdateDateTimeConfig.assert_not_called()

    def test_configure_ntp_rejected(self, standalone_host, host_content, services):
        host_content.configManager.dateTimeSystem.UpdateDateTimeConfig.side_effect = vim.fault.HostConfigFault(
            msg="A general system error occurred"
        )
        with pytest.raises(VCenterOperationError) as exc_info:
            standalone_host.configure_ntp(["10.0.0.1"])
        assert "unable to configure NTP: A general system error occurred" in f"{exc_info.value}"

    def test_unknown_service(self, standalone_host, services):
        with pytest.raises(VSphereWrongParameter):
            standalone_host.restart_service("xyz")


class TestHostPower:
    def test_reboot(self, standalone_host, host_content):
        standalone_host.reboot(force=True)
        host_content.RebootHost_Task.assert_called_once_with(force=True)

    def test_reboot_declined(self, standalone_host, host_content):
        with pytest.raises(OperationCancelled):
            standalone_host.reboot(confirm=lambda message: False)
        host_content.RebootHost_Task.assert_not_called()

    def test_enter_maintenance_mode(self, standalone_host, host_content, wait_for_tasks):
        host_content.runtime.inMaintenanceMode = False
        standalone_host.enter_maintenance_mode()
        host_content.EnterMaintenanceMode_Task.assert_called_once()
        wait_for_tasks.assert_called_once()

    def test_enter_maintenance_mode_already(self, standalone_host, host_content, wait_for_tasks):
        host_content.runtime.inMaintenanceMode = True
        standalone_host.enter_maintenance_mode()
        host_content.EnterMaintenanceMode_Task.assert_not_called()

    def test_exit_maintenance_mode(self, standalone_host, host_content, wait_for_tasks):
        host_content.runtime.inMaintenanceMode = True
        standalone_host.exit_maintenance_mode()
        host_content.ExitMaintenanceMode_Task.assert_called_once_with(timeout=0)
