# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""ESXi host support for API/pyvmomi."""
import logging
from OpenSSL.crypto import load_certificate, FILETYPE_PEM
from packaging.version import Version
from http.client import HTTPException
from socket import error as socket_error
from time import monotonic, sleep
from typing import Callable, Optional
from pyVim import connect
from pyVmomi import vim, vmodl

from mfd_common_libs import log_levels, add_logging_level
from .const import HOST_BOOT_INTERVAL, HOST_BOOT_TIMEOUT, HOST_DOWN_TIMEOUT
from .exceptions import ESXiAPIInvalidLogin, ESXiAPISocketError, VSphereRuntimeError
from .poller import ProbeResult, ProbeState, wait_until
from .utils import require_confirmation

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

_UNREACHABLE = (socket_error, HTTPException, ConnectionError, vim.fault.HostConnectFault)
# SmartConnect raises plain Exception when vimServiceVersions.xml is not served yet
_NOT_VIM_SERVER = "is down or is not a VIM server"


class ESXiHostAPI(object):
    """ESXi SOAP API wrapper."""

    def __init__(self, ip: str, login: str, password: str, port: int = 443):
        """
        Init object.

        :param ip: Host IP address
        :param login: Login name
        :param password: Password
        :param port: Port number
        """
        self.__service = None
        self.__content = None
        self._ip = ip
        self._login = login
        self._password = password
        self._port = port
        self._fingerprint = None

    def __repr__(self) -> str:
        """Return string representation of an object.

        :return: class name and IP address
        """
        return f"{self.__class__.__name__}('{self._ip}')"

    @property
    def ip(self) -> str:
        """Get address of host."""
        return self._ip

    @property
    def _content(self) -> vim.ServiceInstanceContent:
        """Content of host in API.

        :return: Service content
        """
        try:
            if self.__service:
                if self.__content.sessionManager.currentSession:
                    return self.__content
                else:
                    logger.log(
                        level=log_levels.MODULE_DEBUG,
                        msg=f"{self._ip} the session has expired",
                    )
        except (HTTPException, ConnectionError):
            logger.log(
                level=log_levels.MODULE_DEBUG,
                msg=f"{self._ip} HTTP connection error, reconnecting",
            )

        self.__content = self._reconnect()
        return self.__content

    def _smart_connect(self) -> vim.ServiceInstance:
        return connect.SmartConnect(
            host=self._ip,
            user=self._login,
            pwd=self._password,
            port=self._port,
            connectionPoolTimeout=-1,
            disableSslCertValidation=True,
        )

    def _connect(self) -> vim.ServiceInstanceContent:
        """Connect to the specified server using API.

        :return: Service content
        :raise ESXiAPIInvalidLogin: Invalid login for host
        :raise ESXiAPISocketError: Error with connection
        """
        try:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"Connecting to: {self._ip}")
            self.__service = self._smart_connect()
            return self.__service.RetrieveServiceContent()
        except vim.fault.InvalidLogin as e:
            raise ESXiAPIInvalidLogin(f"{self._ip}: {e.msg}")
        except socket_error as e:
            raise ESXiAPISocketError(f"{self._ip}: {e}")

    def _disconnect(self) -> None:
        """Disconnect from server."""
        if self.__service:
            try:
                connect.Disconnect(self.__service)
            except _UNREACHABLE as e:
                logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self._ip} disconnect failed: {e}")
            self.__service = None
            self.__content = None

    def _reconnect(self) -> vim.ServiceInstanceContent:
        """Reconnect server.

        :return: Service content
        """
        self._disconnect()
        return self._connect()

    def disconnect(self) -> None:
        """Close session."""
        self._disconnect()

    @property
    def version(self) -> "Version":
        """Return version of vSphere.

        :return: version object
        """
        return Version(self._content.about.apiVersion)

    def get_host(self) -> "vim.HostSystem":
        """Get host object from local content.

        :return: host object
        """
        view = self._content.viewManager.CreateContainerView(self._content.rootFolder, [vim.HostSystem], True)
        try:
            return view.view[0]
        finally:
            view.Destroy()

    @property
    def fingerprint(self) -> str:
        """Get fingerprint of host certificate."""
        if self._fingerprint is None:
            self._fingerprint = self.get_fingerprint()
        return self._fingerprint

    def get_fingerprint(self, digest: str = "sha1") -> str:
        """Get fingerprint of host certificate using digest algorithm.

        :param digest: Name of digest algorithm.

        :return: Fingerprint of host certificate.
        """
        cert_bytes = bytes(self.get_host().config.certificate)
        cert = load_certificate(FILETYPE_PEM, cert_bytes)
        fingerprint_bytes = cert.digest(digest)
        return fingerprint_bytes.decode("UTF-8")

    def probe_login(self) -> ProbeResult:
        """
        Try fresh login to host, used as readiness probe.

        Rejected credentials are fatal, unreachable API means not ready.

        :return: Probe result with API version as payload.
        """
        try:
            service = self._smart_connect()
        except vim.fault.InvalidLogin as e:
            return ProbeResult.fatal(ESXiAPIInvalidLogin(f"{self._ip}: {e.msg}"))
        except _UNREACHABLE as e:
            return ProbeResult.not_ready(f"{type(e).__name__}: {e}")
        except Exception as e:
            if _NOT_VIM_SERVER not in f"{e}":
                raise
            return ProbeResult.not_ready(f"{e}")
        try:
            return ProbeResult.ready(service.RetrieveServiceContent().about.apiVersion)
        except _UNREACHABLE as e:
            return ProbeResult.not_ready(f"{type(e).__name__}: {e}")
        finally:
            try:
                connect.Disconnect(service)
            except _UNREACHABLE:
                logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self._ip} probe session not closed")

    def probe_down(self) -> ProbeResult:
        """
        Readiness probe inverted: ready when host API stops answering.

        :return: Probe result.
        """
        result = self.probe_login()
        if result.state is ProbeState.READY:
            return ProbeResult.not_ready("host API still answering")
        if result.error is not None:
            return result
        return ProbeResult.ready(result.reason)

    def wait_for_boot(
        self,
        timeout: float = HOST_BOOT_TIMEOUT,
        interval: float = HOST_BOOT_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> str:
        """
        Wait until host accepts API login.

        :param timeout: Maximum wait in seconds.
        :param interval: Interval between login attempts.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: API version reported by host.
        :raise DeadlineExceeded: Host did not come up in time.
        :raise ESXiAPIInvalidLogin: Host rejected credentials.
        """
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Waiting up to {timeout}s for {self._ip} to boot")
        return wait_until(
            self.probe_login,
            timeout=timeout,
            interval=interval,
            description=f"ESXi host {self._ip}",
            clock=clock,
            sleeper=sleeper,
        )

    def wait_for_shutdown(
        self,
        timeout: float = HOST_DOWN_TIMEOUT,
        interval: float = HOST_BOOT_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """
        Wait until host API stops answering.

        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param clock: Time source.
        :param sleeper: Sleep function.
        """
        wait_until(
            self.probe_down,
            timeout=timeout,
            interval=interval,
            description=f"ESXi host {self._ip} to go down",
            clock=clock,
            sleeper=sleeper,
        )

    def reboot(self, force: bool = True, confirm: Optional[Callable[[str], bool]] = None) -> None:
        """
        Reboot host through its own API session.

        :param force: Reboot even when host is not in maintenance mode.
        :param confirm: Optional confirmation callback.
        """
        require_confirmation(f"Reboot host {self._ip}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Rebooting {self._ip} (force={force})")
        try:
            self.get_host().RebootHost_Task(force=force)
        except vmodl.MethodFault as e:
            raise VSphereRuntimeError(f"{self._ip}: unable to reboot: {getattr(e, 'msg', e)}")
        self._disconnect()

    def reboot_and_wait(
        self,
        force: bool = True,
        timeout: float = HOST_BOOT_TIMEOUT,
        interval: float = HOST_BOOT_INTERVAL,
        down_timeout: float = HOST_DOWN_TIMEOUT,
        confirm: Optional[Callable[[str], bool]] = None,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> str:
        """
        Reboot host, wait for it to go down and come back.

        :param force: Reboot even when host is not in maintenance mode.
        :param timeout: Maximum wait for boot in seconds.
        :param interval: Interval between checks.
        :param down_timeout: Maximum wait for shutdown in seconds.
        :param confirm: Optional confirmation callback.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: API version reported by host after boot.
        """
        self.reboot(force=force, confirm=confirm)
        self.wait_for_shutdown(timeout=down_timeout, interval=interval, clock=clock, sleeper=sleeper)
        return self.wait_for_boot(timeout=timeout, interval=interval, clock=clock, sleeper=sleeper)
