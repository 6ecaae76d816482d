# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Standard portgroup wrapper."""
import logging
from typing import Any, Generator, Optional, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from ..utils import fault_message, get_obj_from_iter
from ..exceptions import VCenterOperationError, VCenterResourceMissing
from ..virtual_adapter import VirtualAdapter
from ...exceptions import VSphereWrongParameter
from ...utils import netmask_to_prefix, prefix_to_netmask

if TYPE_CHECKING:
    from ..host import Host

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class VSPortgroup(object):
    """Standard portgroup wrapper."""

    def __init__(self, name: str, host: "Host"):
        """
        Initialize instance.

        :param name: Name of portgroup.
        :param host: Host.
        """
        self._name = name
        self._host = host

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def name(self) -> str:
        """Name for portgroup."""
        return self._name

    @property
    def content(self) -> "vim.host.PortGroup":
        """Content of portgroup in API."""
        for pg in self._host.content.config.network.portgroup:
            if pg.spec.name == self.name:
                return pg
        raise VCenterResourceMissing(self)

    @property
    def vswitch_name(self) -> str:
        """Get name of vSwitch owning portgroup."""
        return self.content.spec.vswitchName

    @property
    def vlan(self) -> int:
        """Get VLAN ID of portgroup."""
        return self.content.spec.vlanId

    def set_vlan(self, vlan_id: int) -> None:
        """
        Set VLAN ID of portgroup.

        :param vlan_id: VLAN number, 0 means untagged.
        """
        spec = self.content.spec
        spec.vlanId = vlan_id
        self._host.content.configManager.networkSystem.UpdatePortGroup(self.name, spec)

    @property
    def virtual_adapters(self) -> Generator["VirtualAdapter", Any, None]:
        """
        Get all virtual adapters from portgroup.

        :return: Generator with all adapters.
        """
        return (
            VirtualAdapter(virtual_nic.device, self._host)
            for virtual_nic in self._host.content.config.network.vnic
            if virtual_nic.portgroup == self.name
        )

    def get_virtual_adapter_by_name(self, name: str) -> "VirtualAdapter":
        """
        Get specific virtual adapter from portgroup.

        :param name: Name of virtual adapter.

        :return: Virtual adapter.
        """
        return get_obj_from_iter(self.virtual_adapters, name)

    def add_virtual_adapter(
        self, mtu: int = 1500, ip: Optional[str] = None, mask: Optional[str] = None
    ) -> "VirtualAdapter":
        """
        Add new virtual adapter to portgroup, without ip and mask DHCP is used.

        :param mtu: MTU size for virtual adapter.
        :param ip: IP address
        :param mask: Netmask or prefix length for IP

        :return: Newly added virtual adapter.
        :raise VCenterOperationError: Host rejected adapter.
        """
        ip_config = vim.host.IpConfig()

        if ip and mask:
            ip_config.dhcp = False
            ip_config.ipAddress = ip
            ip_config.subnetMask = prefix_to_netmask(netmask_to_prefix(mask))
        elif not ip and not mask:
            ip_config.dhcp = True
        else:
            raise VSphereWrongParameter("Unknown config please set both IP and netmask or none.")

        virtual_nic_spec = vim.host.VirtualNic.Specification()
        virtual_nic_spec.ip = ip_config
        virtual_nic_spec.mtu = mtu

        try:
            name = self._host.content.configManager.networkSystem.AddVirtualNic(self.name, virtual_nic_spec)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, "add VMkernel adapter", fault_message(e))
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Added {name} to portgroup {self.name}")
        return VirtualAdapter(name, self._host)
