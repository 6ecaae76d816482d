# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
# pylint: disable=protected-access
"""VirtualAdapter wrapper."""
import logging
from pyVmomi import vim, vmodl
from typing import Callable, Optional, Union, TYPE_CHECKING

from mfd_common_libs import log_levels, add_logging_level
from .exceptions import VCenterResourceMissing, VCenterOperationError
from .utils import fault_message
from ..exceptions import VSphereWrongParameter
from ..utils import netmask_to_prefix, prefix_to_netmask, require_confirmation

if TYPE_CHECKING:
    from .host import Host
    from .virtual_switch.portgroup import VSPortgroup

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class VirtualAdapter(object):
    """VMkernel adapter wrapper."""

    def __init__(self, name: str, host: "Host"):
        """
        Initialize instance.

        :param name: Virtual adapter name.
        :param host: Host.
        """
        self._name = name
        self._host = host

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}') in {self._host}"

    @property
    def content(self) -> "vim.host.VirtualNic":
        """Get content of VirtualNetworkAdapter."""
        for virtual_nic in self._host.content.config.network.vnic:
            if virtual_nic.device == self.name:
                return virtual_nic
        raise VCenterResourceMissing(self)

    @property
    def name(self) -> str:
        """Get name for VirtualAdapter."""
        return self._name

    @property
    def portgroup(self) -> str:
        """Get name of standard portgroup adapter is connected to, empty for distributed port."""
        return self.content.portgroup or ""

    @property
    def mac(self) -> str:
        """MAC value for virtual adapter."""
        return self.content.spec.mac

    @property
    def ip(self) -> str:
        """Get IPv4 address of virtual adapter, empty when unset or link-local."""
        address = self.content.spec.ip.ipAddress
        if address and not address.startswith("169."):
            return address
        return ""

    @property
    def mask(self) -> str:
        """Get IPv4 netmask of virtual adapter."""
        return self.content.spec.ip.subnetMask if self.ip else ""

    @property
    def prefix(self) -> Optional[int]:
        """Get IPv4 prefix length of virtual adapter."""
        return netmask_to_prefix(self.mask) if self.mask else None

    @property
    def dhcp(self) -> bool:
        """Check whether adapter uses DHCP."""
        return bool(self.content.spec.ip.dhcp)

    def set_ip(self, ip: Optional[str] = None, mask: Optional[str] = None) -> None:
        """
        Set IPv4 configuration, without ip and mask DHCP is used.

        :param ip: IP address.
        :param mask: Netmask or prefix length.
        """
        spec = self.content.spec
        if ip and mask:
            spec.ip = vim.host.IpConfig(dhcp=False, ipAddress=ip, subnetMask=prefix_to_netmask(netmask_to_prefix(mask)))
        elif not ip and not mask:
            spec.ip = vim.host.IpConfig(dhcp=True)
        else:
            raise VSphereWrongParameter("Unknown config please set both IP and netmask or none.")
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Setting {self.name} IP to {ip or 'DHCP'}/{mask or ''}")
        self._update(spec, "set IP")

    def move_to_portgroup(
        self,
        portgroup: Union["VSPortgroup", str],
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> None:
        """
        Reconnect adapter to another standard portgroup, possibly on another vSwitch.

        :param portgroup: Destination portgroup or its name.
        :param confirm: Optional confirmation callback.

        :raise VSphereWrongParameter: Destination portgroup does not exist on host.
        """
        target = portgroup if isinstance(portgroup, str) else portgroup.name
        existing = {pg.spec.name for pg in self._host.content.config.network.portgroup}
        if target not in existing:
            raise VSphereWrongParameter(f"Portgroup {target} does not exist on {self._host.name}")
        current = self.portgroup
        if current == target:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self.name} already on portgroup {target}")
            return
        require_confirmation(f"Move {self.name} from {current or 'distributed port'} to {target}?", confirm)

        spec = self.content.spec
        spec.portgroup = target
        spec.distributedVirtualPort = None
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Moving {self.name} from {current} to {target}")
        self._update(spec, f"move to portgroup {target}")

    def _update(self, spec: "vim.host.VirtualNic.Specification", action: str) -> None:
        try:
            self._host.content.configManager.networkSystem.UpdateVirtualNic(self.name, spec)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, action, fault_message(e))

