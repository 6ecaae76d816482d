# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Single host vSAN bootstrap."""
import logging
from typing import Callable, Iterable, List, Optional, Tuple, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .const import VSAN_POLICY_CLASSES, VSAN_SINGLE_HOST_POLICY
from .exceptions import EsxcliError, VsanSetupError
from .utils import require_confirmation
from .vcenter.exceptions import VCenterTaskError
from .vcenter.utils import fault_message

if TYPE_CHECKING:
    from mfd_connect import Connection
    from .vcenter.host import Host

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

ELIGIBLE = "eligible"


def disk_size(disk: "vim.host.ScsiDisk") -> int:
    """
    Get size of disk in bytes.

    :param disk: SCSI disk.

    :return: Size in bytes.
    """
    return disk.capacity.block * disk.capacity.blockSize


def select_disks(
    disk_results: Iterable["vim.vsan.host.DiskResult"], min_size: int = 0
) -> Tuple["vim.host.ScsiDisk", List["vim.host.ScsiDisk"]]:
    """
    Split eligible flash disks into cache and capacity tier.

    The smallest disk becomes the cache disk, all others are capacity disks.

    :param disk_results: Result of QueryDisksForVsan.
    :param min_size: Ignore disks smaller than this many bytes.

    :return: Cache disk and list of capacity disks.
    :raise VsanSetupError: Less than two eligible flash disks.
    """
    flash = [
        result.disk
        for result in disk_results
        if result.state == ELIGIBLE and result.disk.ssd and disk_size(result.disk) >= min_size
    ]
    if len(flash) < 2:
        raise VsanSetupError(f"At least 2 eligible flash disks required, found {len(flash)}")
    flash.sort(key=lambda d: (disk_size(d), d.canonicalName))
    cache, capacity = flash[0], flash[1:]
    logger.log(
        level=log_levels.MODULE_DEBUG,
        msg=f"vSAN cache disk: {cache.canonicalName}, capacity disks: {[d.canonicalName for d in capacity]}",
    )
    return cache, capacity


class VsanHost(object):
    """vSAN configuration of single host."""

    def __init__(self, host: "Host", connection: "Connection"):
        """
        Initialize instance.

        :param host: Host wrapper.
        :param connection: Command connection to ESXi shell.
        """
        self._host = host
        self._connection = connection

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self._host.name}')"

    @property
    def vsan_system(self) -> "vim.host.VsanSystem":
        """Get vSAN system of host."""
        return self._host.content.configManager.vsanSystem

    @property
    def is_enabled(self) -> bool:
        """Check whether host is member of vSAN cluster."""
        return bool(self.vsan_system.config.enabled)

    def eligible_disks(self) -> List["vim.vsan.host.DiskResult"]:
        """Get disks with eligibility state reported by host."""
        return list(self.vsan_system.QueryDisksForVsan())

    def esxcli(self, command: str) -> str:
        """
        Run esxcli command on host.

        :param command: Command without esxcli prefix.

        :return: Output.
        :raise EsxcliError: Non-zero return code.
        """
        return self._connection.execute_command(f"esxcli {command}", custom_exception=EsxcliError).stdout

    def create_cluster(self) -> None:
        """Create new single member vSAN cluster on host."""
        if self.is_enabled:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"vSAN already enabled on {self._host.name}")
            return
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Creating vSAN cluster on {self._host.name}")
        self.esxcli("vsan cluster new")

    def set_default_policy(self, policy: str = VSAN_SINGLE_HOST_POLICY) -> None:
        """
        Set default vSAN policy for every policy class.

        :param policy: Policy expression.
        """
        for policy_class in VSAN_POLICY_CLASSES:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"Setting vSAN {policy_class} policy to {policy}")
            self.esxcli(f"vsan policy setdefault -c {policy_class} -p '{policy}'")

    def tag_capacity_flash(self, disks: Iterable["vim.host.ScsiDisk"]) -> None:
        """
        Mark flash disks as capacity tier.

        :param disks: Disks to tag.
        """
        for disk in disks:
            self.esxcli(f"vsan storage tag add -d {disk.canonicalName} -t capacityFlash")

    def claim_disks(self, cache: "vim.host.ScsiDisk", capacity: List["vim.host.ScsiDisk"]) -> None:
        """
        Create disk group.

        :param cache: Cache disk.
        :param capacity: Capacity disks.

        :raise VsanSetupError: Host rejected disk group.
        """
        mapping = vim.vsan.host.DiskMapping(ssd=cache, nonSsd=capacity)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Claiming vSAN disk group on {self._host.name}")
        try:
            self._host.vcenter.wait_for_tasks(
                [self.vsan_system.InitializeDisks_Task(mapping=[mapping])],
                description=f"claim vSAN disks on {self._host.name}",
            )
        except vmodl.MethodFault as e:
            raise VsanSetupError(f"{self._host.name}: unable to claim disks: {fault_message(e)}")
        except VCenterTaskError as e:
            raise VsanSetupError(f"{self._host.name}: {e}")

    def claim_eligible(self, min_size: int = 0) -> Tuple["vim.host.ScsiDisk", List["vim.host.ScsiDisk"]]:
        """
        Pick eligible flash disks and create disk group from them.

        :param min_size: Ignore disks smaller than this many bytes.

        :return: Cache disk and capacity disks.
        """
        cache, capacity = select_disks(self.eligible_disks(), min_size=min_size)
        self.tag_capacity_flash(capacity)
        self.claim_disks(cache, capacity)
        return cache, capacity

    def claim_in_cluster(self, min_size: int = 0) -> Tuple["vim.host.ScsiDisk", List["vim.host.ScsiDisk"]]:
        """
        Claim eligible disks of host which is member of vSAN cluster.

        :param min_size: Ignore disks smaller than this many bytes.

        :return: Cache disk and capacity disks.
        :raise VsanSetupError: Host is not in a cluster.
        :raise VCenterNotVsanCluster: Cluster has vSAN disabled.
        """
        if self._host.cluster is None:
            raise VsanSetupError(f"{self._host.name} is not a cluster member")
        self._host.cluster.require_vsan()
        return self.claim_eligible(min_size=min_size)

    def bootstrap(
        self, min_size: int = 0, confirm: Optional[Callable[[str], bool]] = None
    ) -> Tuple["vim.host.ScsiDisk", List["vim.host.ScsiDisk"]]:
        """
        Bootstrap vSAN datastore on standalone host.

        Creates single member cluster, relaxes default policy so objects can be provisioned with one host,
        then claims eligible disks.

        :param min_size: Ignore disks smaller than this many bytes.
        :param confirm: Optional confirmation callback.

        :return: Cache disk and capacity disks.
        """
        cache, capacity = select_disks(self.eligible_disks(), min_size=min_size)
        names = ", ".join(disk.canonicalName for disk in [cache] + capacity)
        require_confirmation(f"Bootstrap vSAN on {self._host.name} erasing disks {names}?", confirm)
        self.create_cluster()
        self.set_default_policy()
        self.tag_capacity_flash(capacity)
        self.claim_disks(cache, capacity)
        return cache, capacity
