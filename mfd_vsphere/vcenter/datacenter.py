# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
# pylint: disable=protected-access
"""Datacenter wrapper."""
import logging
from typing import Any, Generator, Iterable, List, TYPE_CHECKING

from pyVmomi import vim
from itertools import chain

from .host import Host
from .cluster import Cluster
from .folder import Folder

from .exceptions import VCenterResourceSetupError
from .utils import get_obj_from_iter, get_first_match_from_iter
from ..utils import resolve_single

from mfd_common_libs import log_levels, add_logging_level

if TYPE_CHECKING:
    from .datastore import Datastore
    from .vcenter import VCenter


logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class Datacenter(object):
    """Datacenter wrapper."""

    def __init__(self, name: str, vcenter: "VCenter"):
        """
        Initialize instance.

        :param name: Name of datacenter.
        :param vcenter: VCenter.
        """
        self._name = name
        self._vcenter = vcenter

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.Datacenter":
        """Content of datacenter in API."""
        return get_obj_from_iter(
            self.vcenter.create_view(self.vcenter.content.rootFolder, [vim.Datacenter]),
            self.name,
        )

    @property
    def name(self) -> str:
        """Get name of datacenter."""
        return self._name

    @property
    def vcenter(self) -> "VCenter":
        """Get VCenter for this datacenter."""
        return self._vcenter

    @property
    def clusters(self) -> Generator["Cluster", Any, None]:
        """Gat all clusters from datacenter."""
        return (
            Cluster(cluster.name, self)
            for cluster in self.vcenter.create_view(self.content.hostFolder, [vim.ClusterComputeResource], True)
        )

    def get_cluster_by_name(self, name: str) -> "Cluster":
        """
        Get specific cluster from datacenter.

        :param name: Name of cluster.

        :return: Cluster.
        """
        return get_obj_from_iter(self.clusters, name)

    @property
    def hosts(self) -> Iterable["Host"]:
        """Get all hosts from datacenter."""
        hosts = (
            Host(host.name, self)
            for compute in self.vcenter.create_view(self.content.hostFolder, [vim.ComputeResource], True)
            if not isinstance(compute, vim.ClusterComputeResource)
            for host in compute.host
        )

        return chain(hosts, *(cluster.hosts for cluster in self.clusters))

    def get_host_by_name(self, name: str) -> "Host":
        """
        Get specific host from datacenter.

        :param name: Host name or IP address as registered in inventory.

        :return: Host.
        """
        return get_obj_from_iter(self.hosts, name)

    def add_host(self, ip: str, login: str, password: str, fingerprint: str) -> "Host":
        """
        Add standalone host to datacenter.

        :param ip: Host IP address
        :param login: Login to the host
        :param password: Password for the host
        :param fingerprint: Fingerprint for the host

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
                [self.content.hostFolder.AddStandaloneHost(spec=spec, addConnected=True)],
                description=f"add host {ip}",
            )
        except vim.fault.DuplicateName:
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"Host: {ip} already exist return existing",
            )
        if get_first_match_from_iter(self.hosts, lambda h: h.name == ip) is None:
            raise VCenterResourceSetupError(f"Host@{ip}")
        return Host(ip, self)

    @property
    def datastores(self) -> List["Datastore"]:
        """Get all datastores in datacenter, shared datastores listed once."""
        unique = {}
        for datastore in chain(*(host.datastores for host in self.hosts)):
            unique.setdefault(datastore.name, datastore)
        return list(unique.values())

    def get_datastore_by_wildcard(self, pattern: str) -> "Datastore":
        """
        Get the only datastore with name matching pattern.

        :param pattern: Pattern with * and ? wildcards.

        :return: Datastore.
        """
        return resolve_single(self.datastores, pattern, kind="datastore")

    @property
    def folders(self) -> Generator["Folder", Any, None]:
        """Get all folders in datacenter."""
        content = self.content
        return (
            Folder(folder.name, self)
            for folder in self.vcenter.create_view(content, [vim.Folder], True)
            if folder.parent != content
        )

    def get_folder_by_wildcard(self, pattern: str) -> "Folder":
        """
        Get the only folder with name matching pattern.

        Datacenter root folders (vm, host, datastore, network) are excluded.

        :param pattern: Pattern with * and ? wildcards.

        :return: Folder.
        """
        return resolve_single(self.folders, pattern, kind="folder")
