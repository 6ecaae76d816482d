# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""VirtualMachine wrapper."""
import logging
from time import monotonic, sleep
from typing import Callable, Optional, TYPE_CHECKING
from pyVmomi import vim

from mfd_common_libs import log_levels, add_logging_level
from .utils import get_obj_from_iter
from ..const import GUEST_PROCESS_INTERVAL
from ..poller import ProbeResult, wait_until

if TYPE_CHECKING:
    from .host import Host

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


TOOLS_TIMEOUT = 300


class VirtualMachine(object):
    """VirtualMachine wrapper."""

    def __init__(self, name: str, host: "Host"):
        """
        Initialize instance.

        :param name: Name of VM.
        :param host: Host.
        """
        self._name = name
        self._host = host

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self.name}')"

    @property
    def content(self) -> "vim.VirtualMachine":
        """Get content of VM in API."""
        return get_obj_from_iter(self._host.content.vm, self.name)

    @property
    def name(self) -> str:
        """Get name of VM."""
        return self._name

    @property
    def host(self) -> "Host":
        """Get host running the VM."""
        return self._host

    @property
    def power_state(self) -> "vim.VirtualMachine.PowerState":
        """Get power stat for virtual machine."""
        return self.content.runtime.powerState

    def power_off(self, wait: bool = True) -> Optional["vim.Task"]:
        """
        Power off virtual machine.

        :param wait: If true method will wait for powered off.

        :return: Task if operation is in progress otherwise None.
        """
        if self.power_state == vim.VirtualMachine.PowerState.poweredOn:
            task = self.content.PowerOff()
            if not wait:
                return task
            self._host.vcenter.wait_for_tasks([task], description=f"power off {self.name}")

    def power_on(self, wait: bool = True) -> Optional["vim.Task"]:
        """
        Power on virtual machine.

        :param wait: If true method will wait for powered on.

        :return: Task if operation is in progress otherwise None.
        """
        if self.power_state == vim.VirtualMachine.PowerState.poweredOff:
            task = self.content.PowerOn()
            if not wait:
                return task
            self._host.vcenter.wait_for_tasks([task], description=f"power on {self.name}")

    @property
    def tools_running(self) -> bool:
        """Check whether VMware Tools are running in guest."""
        return self.content.guest.toolsRunningStatus == vim.vm.GuestInfo.ToolsRunningStatus.guestToolsRunning

    def wait_for_tools(
        self,
        timeout: int = TOOLS_TIMEOUT,
        interval: int = GUEST_PROCESS_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """
        Wait until VMware Tools report running.

        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param clock: Time source.
        :param sleeper: Sleep function.
        """

        def _probe() -> ProbeResult:
            if self.power_state != vim.VirtualMachine.PowerState.poweredOn:
                return ProbeResult.not_ready(f"power state {self.power_state}")
            if self.tools_running:
                return ProbeResult.ready()
            return ProbeResult.not_ready("tools not running")

        wait_until(
            _probe,
            timeout=timeout,
            interval=interval,
            description=f"VMware Tools in {self.name}",
            clock=clock,
            sleeper=sleeper,
        )
