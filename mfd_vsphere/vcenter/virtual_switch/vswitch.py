# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""VSwitch wrapper."""
import logging
from typing import Any, Callable, Generator, Dict, Optional, Set, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from ..utils import fault_message, get_obj_from_iter
from ..exceptions import VCenterOperationError, VCenterResourceMissing, VCenterResourceInUse
from ..virtual_switch.portgroup import VSPortgroup
from ...exceptions import VSphereWrongParameter
from ...utils import require_confirmation

if TYPE_CHECKING:
    from ..host import Host

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class VSwitch(object):
    """VSwitch wrapper."""

    def __init__(self, name: str, host: "Host"):
        """
        Initialize instance.

        :param name: Name of VSwitch.
        :param host: Host.
        """
        self._name = name
        self._host = host

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def name(self) -> str:
        """Name of vSwitch."""
        return self._name

    @property
    def content(self) -> vim.host.VirtualSwitch:
        """Content of vSwitch in API."""
        for vs in self._host.content.config.network.vswitch:
            if vs.name == self._name and isinstance(vs, vim.host.VirtualSwitch):
                return vs
        raise VCenterResourceMissing(self)

    @property
    def portgroups(self) -> Generator["VSPortgroup", Any, None]:
        """Get all portgroups from vSwitch."""
        return (
            VSPortgroup(pg.spec.name, self._host)
            for pg in self._host.content.config.network.portgroup
            if pg.spec.vswitchName == self.name
        )

    def get_portgroup_by_name(self, name: str) -> "VSPortgroup":
        """
        Specific portgroup from vSwitch.

        :param name: Name of portgroup.

        :return: Portgroup object.
        """
        return get_obj_from_iter(self.portgroups, name)

    def add_portgroup(self, name: str, vlan: int = 0) -> "VSPortgroup":
        """
        Add new portgroup to vSwitch.

        :param name: Name for new portgroup.
        :param vlan: VLAN ID, 0 means untagged.

        :return: New portgroup.
        """
        logger.log(
            level=log_levels.MODULE_DEBUG,
            msg=f"Adding portgroup: {name} (VLAN {vlan}) to VSwitch {self.name}",
        )
        spec = vim.host.PortGroup.Specification()
        spec.name = name
        spec.vswitchName = self.name
        spec.vlanId = vlan
        spec.policy = vim.host.NetworkPolicy()
        try:
            self._host.content.configManager.networkSystem.AddPortGroup(portgrp=spec)
        except vim.fault.AlreadyExists:
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"Portgroup: {name} already exist return existing.",
            )
        return VSPortgroup(name, self._host)

    @property
    def nics(self) -> Dict[str, Set[str]]:
        """Get all nics assigned to vSwitch grouped by active, standby, unused."""
        spec = self.content.spec
        if spec.bridge:
            nic_order = spec.policy.nicTeaming.nicOrder if spec.policy.nicTeaming else None
            nics = {
                "active": set(nic_order.activeNic) if nic_order else set(),
                "standby": set(nic_order.standbyNic) if nic_order else set(),
            }
            nics["unused"] = set(spec.bridge.nicDevice) - nics["active"] - nics["standby"]
            return nics
        return {"active": set(), "standby": set(), "unused": set()}

    @nics.setter
    def nics(self, value: Dict[str, Set[str]]) -> None:
        """
        Set nics to vSwitch.

        :param value: Dict of set.
        """
        logger.log(
            level=log_levels.MODULE_DEBUG,
            msg=f"Set NIC {value} on VSwitch: {self.name}",
        )
        new_nics = {"unused": set(), "active": set(), "standby": set()}
        new_nics.update(value)
        all_nics = new_nics["active"] | new_nics["standby"] | new_nics["unused"]

        spec = self.content.spec
        if not spec.bridge and all_nics:
            spec.bridge = vim.host.VirtualSwitch.BondBridge()
        if all_nics:
            spec.bridge.nicDevice = sorted(all_nics)
        else:
            spec.bridge = None

        if spec.policy.nicTeaming is None:
            spec.policy.nicTeaming = vim.host.NetworkPolicy.NicTeamingPolicy()
        if spec.policy.nicTeaming.nicOrder is None:
            spec.policy.nicTeaming.nicOrder = vim.host.NetworkPolicy.NicOrderPolicy()
        spec.policy.nicTeaming.nicOrder.activeNic = sorted(new_nics["active"])
        spec.policy.nicTeaming.nicOrder.standbyNic = sorted(new_nics["standby"])
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"VSwitch {self.name} new spec\n{spec}")

        try:
            self._host.content.configManager.networkSystem.UpdateVirtualSwitch(self.name, spec)
        except vim.fault.ResourceInUse as e:
            raise VCenterResourceInUse(self, e.msg)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, "update uplinks", fault_message(e))

    @property
    def uplinks(self) -> Set[str]:
        """Get all physical adapters of vSwitch."""
        nics = self.nics
        return nics["active"] | nics["standby"] | nics["unused"]

    def add_uplink(self, nic: str, standby: bool = False) -> None:
        """
        Attach physical adapter to vSwitch.

        :param nic: Physical adapter name.
        :param standby: Add as standby instead of active.
        """
        nics = self.nics
        if nic in nics["active"] | nics["standby"] | nics["unused"]:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{nic} already attached to {self.name}")
            return
        nics["standby" if standby else "active"].add(nic)
        self.nics = nics

    def remove_uplink(self, nic: str) -> None:
        """
        Detach physical adapter from vSwitch.

        :param nic: Physical adapter name.
        """
        nics = self.nics
        for group in nics.values():
            group.discard(nic)
        self.nics = nics

    def move_uplink(
        self,
        nic: str,
        target: "VSwitch",
        standby: bool = False,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> None:
        """
        Move physical adapter from this vSwitch to another one.

        :param nic: Physical adapter name.
        :param target: Destination vSwitch on the same host.
        :param standby: Attach as standby on destination.
        :param confirm: Optional confirmation callback.

        :raise VSphereWrongParameter: Adapter is not an uplink of this vSwitch.
        :raise VCenterOperationError: Destination rejected adapter, adapter is attached back to this vSwitch.
        """
        if target.name == self.name:
            raise VSphereWrongParameter(f"{nic} source and destination vSwitch are the same: {self.name}")
        if nic not in self.uplinks:
            raise VSphereWrongParameter(f"{nic} is not an uplink of {self.name}")
        require_confirmation(f"Move {nic} from {self.name} to {target.name}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Moving {nic} from {self.name} to {target.name}")
        group = next(name for name, members in self.nics.items() if nic in members)
        self.remove_uplink(nic)
        try:
            target.add_uplink(nic, standby=standby)
        except (VCenterResourceInUse, VCenterOperationError):
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"Attaching {nic} back to {self.name} as {group}")
            nics = self.nics
            nics[group].add(nic)
            self.nics = nics
            raise
