# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Datastore wrapper."""
import logging
from typing import Any, Callable, Generator, Optional, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .virtual_machine import VirtualMachine
from .utils import get_obj_from_iter, fault_message, MiB
from .exceptions import VCenterResourceMissing, VCenterOperationError
from ..utils import require_confirmation

if TYPE_CHECKING:
    from .host import Host

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class Datastore(object):
    """Datastore wrapper."""

    def __init__(self, name: str, host: "Host"):
        """
        Initialize instance.

        :param name: Name of datastore.
        :param host: Host parent of datastore.
        """
        self._name = name
        self._host = host

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.Datastore":
        """Get content of datastore in API."""
        for datastore in self._host.content.datastore:
            if datastore.name == self.name:
                return datastore
        raise VCenterResourceMissing(self)

    @property
    def name(self) -> str:
        """Get name of datastore."""
        return self._name

    @property
    def host(self) -> "Host":
        """Get host parent of datastore."""
        return self._host

    @property
    def capacity(self) -> float:
        """Get capacity of datastore in MiB."""
        return self.content.summary.capacity / MiB

    @property
    def free_space(self) -> float:
        """Get free space in datastore in MiB."""
        return self.content.summary.freeSpace / MiB

    @property
    def type(self) -> str:
        """Get filesystem type of datastore e.g. VMFS, vsan, NFS."""
        return self.content.summary.type

    @property
    def vms(self) -> Generator["VirtualMachine", Any, None]:
        """Get all VMs for datastore."""
        return (VirtualMachine(vm.name, self._host) for vm in self.content.vm)

    def get_vm_by_name(self, name: str) -> "VirtualMachine":
        """Get specific VM from datastore.

        :param name: Name of VM.

        :return: Virtual machine.
        """
        return get_obj_from_iter(self.vms, name)

    def rename(self, new_name: str, confirm: Optional[Callable[[str], bool]] = None) -> "Datastore":
        """
        Rename datastore.

        :param new_name: New name of datastore.
        :param confirm: Optional confirmation callback.

        :return: Datastore with new name.
        :raise VCenterOperationError: Rename rejected e.g. duplicate name.
        """
        if new_name == self.name:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"Datastore already named {new_name}")
            return self
        require_confirmation(f"Rename datastore {self.name} to {new_name}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Renaming datastore {self.name} to {new_name}")
        try:
            self.content.RenameDatastore(newName=new_name)
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, f"rename to {new_name}", fault_message(e))
        self._name = new_name
        return self
