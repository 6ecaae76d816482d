# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Program execution inside guest through VMware Tools."""
import logging
from time import monotonic, sleep
from typing import Callable, Dict, Optional, TYPE_CHECKING
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .const import GUEST_PROCESS_INTERVAL, GUEST_PROCESS_TIMEOUT
from .exceptions import GuestOperationError
from .poller import ProbeResult, wait_until
from .vcenter.utils import fault_message

if TYPE_CHECKING:
    from .vcenter.virtual_machine import VirtualMachine

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)


class GuestOperations(object):
    """Guest process manager bound to one VM and guest account."""

    def __init__(self, vm: "VirtualMachine", username: str, password: str):
        """
        Initialize instance.

        :param vm: Virtual machine.
        :param username: Guest OS user.
        :param password: Guest OS password.
        """
        self._vm = vm
        self._auth = vim.vm.guest.NamePasswordAuthentication(username=username, password=password)

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self._vm.name}')"

    @property
    def process_manager(self) -> "vim.vm.guest.ProcessManager":
        """Get guest process manager."""
        return self._vm.host.vcenter.content.guestOperationsManager.processManager

    def start(
        self,
        program: str,
        arguments: str = "",
        working_directory: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> int:
        """
        Start program in guest without waiting.

        :param program: Absolute path of program in guest.
        :param arguments: Program arguments.
        :param working_directory: Working directory in guest.
        :param env: Environment variables.

        :return: Guest PID.
        :raise GuestOperationError: Tools not running, credentials rejected or program not started.
        """
        if not self._vm.tools_running:
            raise GuestOperationError(f"{self._vm.name}: VMware Tools not running")
        spec = vim.vm.guest.ProcessManager.ProgramSpec(programPath=program, arguments=arguments)
        if working_directory:
            spec.workingDirectory = working_directory
        if env:
            spec.envVariables = [f"{key}={value}" for key, value in env.items()]
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Starting in {self._vm.name}: {program} {arguments}")
        try:
            pid = self.process_manager.StartProgramInGuest(self._vm.content, self._auth, spec)
        except vim.fault.InvalidGuestLogin as e:
            raise GuestOperationError(f"{self._vm.name}: invalid guest credentials: {fault_message(e)}")
        except vmodl.MethodFault as e:
            raise GuestOperationError(f"{self._vm.name}: unable to start {program}: {fault_message(e)}")
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"{program} started in {self._vm.name} with PID {pid}")
        return pid

    def probe_exit(self, pid: int) -> ProbeResult:
        """
        Check once whether guest process ended.

        :param pid: Guest PID.

        :return: Probe result with exit code as payload.
        """
        try:
            processes = self.process_manager.ListProcessesInGuest(self._vm.content, self._auth, [pid])
        except vim.fault.InvalidGuestLogin as e:
            return ProbeResult.fatal(GuestOperationError(f"{self._vm.name}: invalid guest credentials: {e.msg}"))
        except vim.fault.GuestOperationsUnavailable as e:
            return ProbeResult.not_ready(f"guest operations unavailable: {fault_message(e)}")
        if not processes:
            return ProbeResult.fatal(GuestOperationError(f"{self._vm.name}: process {pid} not found"))
        process = processes[0]
        if process.endTime is None:
            return ProbeResult.not_ready(f"process {pid} running")
        return ProbeResult.ready(process.exitCode)

    def wait_for_exit(
        self,
        pid: int,
        timeout: float = GUEST_PROCESS_TIMEOUT,
        interval: float = GUEST_PROCESS_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> int:
        """
        Wait until guest process ends.

        :param pid: Guest PID.
        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: Exit code.
        """
        return wait_until(
            lambda: self.probe_exit(pid),
            timeout=timeout,
            interval=interval,
            description=f"process {pid} in {self._vm.name}",
            clock=clock,
            sleeper=sleeper,
        )

    def run(
        self,
        program: str,
        arguments: str = "",
        timeout: float = GUEST_PROCESS_TIMEOUT,
        interval: float = GUEST_PROCESS_INTERVAL,
        check: bool = True,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> int:
        """
        Run program in guest and wait for its exit code.

        :param program: Absolute path of program in guest.
        :param arguments: Program arguments.
        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param check: Raise on non-zero exit code.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: Exit code.
        :raise GuestOperationError: Non-zero exit code and check set.
        """
        pid = self.start(program, arguments)
        exit_code = self.wait_for_exit(pid, timeout=timeout, interval=interval, clock=clock, sleeper=sleeper)
        if check and exit_code != 0:
            raise GuestOperationError(f"{self._vm.name}: {program} {arguments} ended with code {exit_code}")
        return exit_code
