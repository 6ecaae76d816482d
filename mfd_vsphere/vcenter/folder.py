# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Folder wrapper."""
import logging
from typing import Callable, Optional, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .exceptions import VCenterOperationError
from .utils import get_obj_from_iter, fault_message
from ..utils import require_confirmation

if TYPE_CHECKING:
    from .datacenter import Datacenter

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class Folder(object):
    """Folder wrapper."""

    def __init__(self, name: str, datacenter: "Datacenter"):
        """
        Initialize instance.

        :param name: Name of folder.
        :param datacenter: Datacenter owning the folder.
        """
        self._name = name
        self._datacenter = datacenter

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.Folder":
        """Get content of folder in API."""
        return get_obj_from_iter(
            self._datacenter.vcenter.create_view(self._datacenter.content, [vim.Folder], True),
            self.name,
        )

    @property
    def name(self) -> str:
        """Get name of folder."""
        return self._name

    def rename(self, new_name: str, confirm: Optional[Callable[[str], bool]] = None) -> "Folder":
        """
        Rename folder.

        :param new_name: New name.
        :param confirm: Optional confirmation callback.

        :return: Folder with new name.
        """
        require_confirmation(f"Rename folder {self.name} to {new_name}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Renaming folder {self.name} to {new_name}")
        try:
            self._datacenter.vcenter.wait_for_tasks(
                [self.content.Rename(newName=new_name)], description=f"rename folder {self.name}"
            )
        except vmodl.MethodFault as e:
            raise VCenterOperationError(self, f"rename to {new_name}", fault_message(e))
        self._name = new_name
        return self
