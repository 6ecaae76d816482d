# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Host wrapper."""
import logging
from typing import Callable, List, Optional, Any, Generator, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .virtual_machine import VirtualMachine
from .virtual_adapter import VirtualAdapter
from .virtual_switch.vswitch import VSwitch
from .datastore import Datastore
from .exceptions import VCenterOperationError
from .utils import get_obj_from_iter, fault_message
from ..const import NTP_SERVICE
from ..exceptions import VSphereWrongParameter
from ..utils import resolve_single, require_confirmation

if TYPE_CHECKING:
    from .cluster import Cluster
    from .datacenter import Datacenter
    from .vcenter import VCenter

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class Host(object):
    """Host wrapper."""

    def __init__(self, name: str, datacenter: "Datacenter", cluster: Optional["Cluster"] = None):
        """
        Initialize instance.

        :param name: Name of host.
        :param datacenter: Datacenter.
        :param cluster: Cluster.
        """
        self._name = name
        self._datacenter = datacenter
        self._cluster = cluster

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.HostSystem":
        """Get content of host in API."""
        return get_obj_from_iter(
            self.vcenter.create_view(self._datacenter.content.hostFolder, [vim.HostSystem], True),
            self.name,
        )

    @property
    def name(self) -> str:
        """Get name of host."""
        return self._name

    @property
    def vcenter(self) -> "VCenter":
        """Get VCenter for this host."""
        return self._datacenter.vcenter

    @property
    def datacenter(self) -> "Datacenter":
        """Get host datacenter."""
        return self._datacenter

    @property
    def cluster(self) -> Optional["Cluster"]:
        """Get host cluster, None for standalone host."""
        return self._cluster

    @property
    def datastores(self) -> Generator["Datastore", Any, None]:
        """Get all datastores from host."""
        return (Datastore(datastore.name, self) for datastore in self.content.datastore)

    def get_datastore_by_name(self, name: str) -> "Datastore":
        """
        Get specific datastore from host.

        :param name: Name of datastore.

        :return: Datastore.
        """
        return get_obj_from_iter(self.datastores, name)

    def get_datastore_by_wildcard(self, pattern: str) -> "Datastore":
        """
        Get the only datastore with name matching pattern.

        :param pattern: Pattern with * and ? wildcards e.g. datastore1*.

        :return: Datastore.
        """
        return resolve_single(self.datastores, pattern, kind="datastore")

    @property
    def vswitches(self) -> Generator["VSwitch", Any, None]:
        """Get all vSwitches from host."""
        return (
            VSwitch(vs.name, self)
            for vs in self.content.config.network.vswitch
            if isinstance(vs, vim.host.VirtualSwitch)
        )

    def get_vswitch_by_name(self, name: str) -> "VSwitch":
        """
        Get specific vSwitch from host.

        :param name: Name of vSwitch.

        :return: vSwitch.
        """
        return get_obj_from_iter(self.vswitches, name)

    def get_vswitch_by_uplink(self, nic: str) -> Optional["VSwitch"]:
        """
        Get vSwitch which uses physical adapter as uplink.

        :param nic: Physical adapter name e.g. vmnic1.

        :return: vSwitch or None when adapter is not used.
        """
        for vs in self.content.config.network.vswitch:
            if vs.spec.bridge and nic in vs.spec.bridge.nicDevice:
                return VSwitch(vs.name, self)
        return None

    def add_vswitch(self, name: str, mtu: int = 1500, ports: int = 64) -> "VSwitch":
        """
        Add new vSwitch to host.

        :param name: Name of vSwitch
        :param mtu: MTU size.
        :param ports: Number of ports in vSwitch.

        :return: New vSwitch.
        """
        spec = vim.host.VirtualSwitch.Specification()
        spec.numPorts = ports
        spec.mtu = mtu
        try:
            self.content.configManager.networkSystem.AddVirtualSwitch(name, spec)
        except vim.fault.AlreadyExists:
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"VSwitch: {name} already exist return existing",
            )
        return VSwitch(name, self)

    @property
    def physical_nics(self) -> List[str]:
        """Get names of physical adapters."""
        return [pnic.device for pnic in self.content.config.network.pnic]

    @property
    def virtual_adapters(self) -> Generator["VirtualAdapter", Any, None]:
        """Get all VMkernel adapters of host."""
        return (VirtualAdapter(vnic.device, self) for vnic in self.content.config.network.vnic)

    def get_virtual_adapter_by_name(self, name: str) -> "VirtualAdapter":
        """
        Get specific VMkernel adapter.

        :param name: Adapter name e.g. vmk1.

        :return: Virtual adapter.
        """
        return get_obj_from_iter(self.virtual_adapters, name)

    @property
    def vms(self) -> Generator["VirtualMachine", Any, None]:
        """Get all VMs for host."""
        return (VirtualMachine(vm.name, self) for vm in self.content.vm)

    def get_vm(self, name: str) -> "VirtualMachine":
        """
        Get specific VM from host.

        :param name: Name of VM.

        :return: Virtual machine.
        """
        return get_obj_from_iter(self.vms, name)

    def get_connection_state(self) -> str:
        """
        Get connection state of the host added to the Datacenter.

        :return: Connection state of the host.
        """
        return str(self.content.runtime.connectionState)

    @property
    def in_maintenance_mode(self) -> bool:
        """Check whether host is in maintenance mode."""
        return bool(self.content.runtime.inMaintenanceMode)

    @property
    def version(self) -> str:
        """Get ESXi version of host."""
        return self.content.config.product.version

    @property
    def ntp_servers(self) -> List[str]:
        """Get NTP servers configured on host."""
        return list(self.content.configManager.dateTimeSystem.dateTimeInfo.ntpConfig.server)

    def configure_ntp(
        self,
        servers: List[str],
        start_service: bool = True,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> None:
        """
        Replace NTP servers of host and (re)start NTP daemon.

        :param servers: NTP server addresses.
        :param start_service: Set service policy to on and restart ntpd.
        :param confirm: Optional confirmation callback.

        :raise VSphereWrongParameter: Empty server list.
        :raise VCenterOperationError: Host rejected configuration.
        """
        servers = [server.strip() for server in servers if server and server.strip()]
        if not servers:
            raise VSphereWrongParameter("At least one NTP server is required")
        require_confirmation(f"Set NTP servers {servers} on {self.name}?", confirm)

        date_config = vim.host.DateTimeConfig(ntpConfig=vim.host.NtpConfig(server=servers))
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Configuring NTP servers {servers} on {self.name}")
        try:
            self.content.configManager.dateTimeSystem.UpdateDateTimeConfig(config=date_config)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, "configure NTP", fault_message(e))

        if start_service:
            self.set_service_policy(NTP_SERVICE, vim.host.Service.Policy.on)
            self.restart_service(NTP_SERVICE)

    def _service_info(self, service_id: str) -> "vim.host.Service":
        for service in self.content.configManager.serviceSystem.serviceInfo.service:
            if service.key == service_id:
                return service
        raise VSphereWrongParameter(f"Service {service_id} not found on {self.name}")

    def is_service_running(self, service_id: str) -> bool:
        """
        Check whether host service is running.

        :param service_id: Service key e.g. ntpd, TSM-SSH.

        :return: True when running.
        """
        return bool(self._service_info(service_id).running)

    def set_service_policy(self, service_id: str, policy: str) -> None:
        """
        Set startup policy of host service.

        :param service_id: Service key.
        :param policy: One of on, off, automatic.
        """
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Setting {service_id} policy to {policy} on {self.name}")
        try:
            self.content.configManager.serviceSystem.UpdateServicePolicy(id=service_id, policy=str(policy))
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, f"set {service_id} policy", fault_message(e))

    def start_service(self, service_id: str) -> None:
        """
        Start host service, running service is left untouched.

        :param service_id: Service key.
        """
        if self.is_service_running(service_id):
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{service_id} already running on {self.name}")
            return
        try:
            self.content.configManager.serviceSystem.StartService(id=service_id)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, f"start {service_id}", fault_message(e))

    def restart_service(self, service_id: str) -> None:
        """
        Restart host service, stopped service is started.

        :param service_id: Service key.
        """
        if not self.is_service_running(service_id):
            return self.start_service(service_id)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Restarting {service_id} on {self.name}")
        try:
            self.content.configManager.serviceSystem.RestartService(id=service_id)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, f"restart {service_id}", fault_message(e))

    def enter_maintenance_mode(self, timeout: int = 0, evacuate_vsan: str = "noAction") -> None:
        """
        Put host into maintenance mode.

        :param timeout: Task timeout in seconds, 0 means no timeout.
        :param evacuate_vsan: vSAN data migration mode: noAction, ensureObjectAccessibility, evacuateAllData.
        """
        if self.in_maintenance_mode:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self.name} already in maintenance mode")
            return
        spec = vim.host.MaintenanceSpec(vsanMode=vim.vsan.host.DecommissionMode(objectAction=evacuate_vsan))
        self.vcenter.wait_for_tasks(
            [self.content.EnterMaintenanceMode_Task(timeout=timeout, maintenanceSpec=spec)],
            description=f"enter maintenance mode on {self.name}",
        )

    def exit_maintenance_mode(self, timeout: int = 0) -> None:
        """
        Take host out of maintenance mode.

        :param timeout: Task timeout in seconds, 0 means no timeout.
        """
        if not self.in_maintenance_mode:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self.name} not in maintenance mode")
            return
        self.vcenter.wait_for_tasks(
            [self.content.ExitMaintenanceMode_Task(timeout=timeout)],
            description=f"exit maintenance mode on {self.name}",
        )

    def reboot(self, force: bool = False, confirm: Optional[Callable[[str], bool]] = None) -> None:
        """
        Reboot host.

        Task is not awaited, it does not finish before host goes down.

        :param force: Reboot even when host is not in maintenance mode.
        :param confirm: Optional confirmation callback.
        """
        require_confirmation(f"Reboot host {self.name}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Rebooting host {self.name} (force={force})")
        try:
            self.content.RebootHost_Task(force=force)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, "reboot", fault_message(e))
