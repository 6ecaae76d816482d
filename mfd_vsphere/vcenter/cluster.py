# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT

"""Cluster wrapper."""
import logging
from typing import Any, Generator, TYPE_CHECKING
from pyVmomi import vim

from mfd_common_libs import log_levels, add_logging_level
from .host import Host
from .exceptions import VCenterResourceSetupError, VCenterNotVsanCluster
from .utils import get_obj_from_iter, get_first_match_from_iter

if TYPE_CHECKING:
    from .vcenter import VCenter
    from .datacenter import Datacenter


logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class Cluster(object):
    """Cluster wrapper."""

    def __init__(self, name: str, datacenter: "Datacenter"):
        """
        Initialize instance.

        :param name: Name of cluster.
        :param datacenter: Datacenter.
        """
        self._name = name
        self._datacenter = datacenter

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.ClusterComputeResource":
        """Get content of cluster in API."""
        return get_obj_from_iter(
            self.vcenter.create_view(self._datacenter.content.hostFolder, [vim.ClusterComputeResource], True),
            self.name,
        )

    @property
    def name(self) -> str:
        """Get name of cluster."""
        return self._name

    @property
    def vcenter(self) -> "VCenter":
        """Get VCenter for this cluster."""
        return self._datacenter.vcenter

    @property
    def datacenter(self) -> "Datacenter":
        """Get cluster datacenter."""
        return self._datacenter

    @property
    def hosts(self) -> Generator["Host", Any, None]:
        """Get all hosts from cluster."""
        return (Host(host.name, self._datacenter, self) for host in self.content.host)

    def get_host_by_name(self, name: str) -> "Host":
        """
        Get specific host from cluster.

        :param name: Host name or IP address as registered in inventory.

        :return: Specific host form cluster.
        """
        return get_obj_from_iter(self.hosts, name)

    def add_host(self, ip: str, login: str, password: str, fingerprint: str) -> "Host":
        """
        Add host to cluster.

        :param ip: Host IP address.
        :param login: Login to the host.
        :param password: Password for the host.
        :param fingerprint: Fingerprint for the host.

        :return: New host.
        """
        spec = vim.host.ConnectSpec(
            hostName=ip,
            userName=login,
            password=password,
            force=True,
            sslThumbprint=fingerprint,
        )

        try:
            self.vcenter.wait_for_tasks(
                [self.content.AddHost(spec=spec, asConnected=True)], description=f"add host {ip} to {self.name}"
            )
        except vim.fault.DuplicateName:
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"Host: {ip} already exist return existing",
            )
        if get_first_match_from_iter(self.hosts, lambda h: h.name == ip) is None:
            raise VCenterResourceSetupError(self)
        return Host(ip, self._datacenter, self)

    @property
    def is_vsan_enabled(self) -> bool:
        """Check whether vSAN is enabled on cluster."""
        vsan_config = self.content.configurationEx.vsanConfigInfo
        return bool(vsan_config and vsan_config.enabled)

    def require_vsan(self) -> None:
        """
        Make sure cluster has vSAN enabled.

        :raise VCenterNotVsanCluster: vSAN is disabled.
        """
        if not self.is_vsan_enabled:
            raise VCenterNotVsanCluster(f"{self.name} is not a vSAN cluster")

    def enable_vsan(self, auto_claim: bool = False) -> None:
        """
        Enable vSAN on cluster.

        :param auto_claim: Let vSAN claim eligible disks automatically.
        """
        if self.is_vsan_enabled:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"vSAN already enabled on {self.name}")
            return
        vsan_config = vim.vsan.cluster.ConfigInfo(
            enabled=True,
            defaultConfig=vim.vsan.cluster.ConfigInfo.HostDefaultInfo(autoClaimStorage=auto_claim),
        )
        spec = vim.cluster.ConfigSpecEx(vsanConfig=vsan_config)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Enabling vSAN on cluster {self.name}")
        self.vcenter.wait_for_tasks(
            [self.content.ReconfigureEx(spec=spec, modify=True)], description=f"enable vSAN on {self.name}"
        )
