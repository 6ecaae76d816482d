# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""VCSA appliance REST API client."""
import logging
import requests
from time import monotonic, sleep
from typing import Any, Callable, Dict, Optional

from mfd_common_libs import log_levels, add_logging_level
from .const import APPLIANCE_DOWN_TIMEOUT, APPLIANCE_READY_INTERVAL, APPLIANCE_READY_TIMEOUT
from .exceptions import ApplianceApiError, ApplianceInvalidLogin
from .poller import ProbeResult, wait_until
from .utils import require_confirmation

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

SESSION_HEADER = "vmware-api-session-id"
HEALTH_READY = "green"
_UNREACHABLE = (requests.ConnectionError, requests.Timeout)


class ApplianceApi(object):
    """vCenter Server Appliance REST API wrapper."""

    def __init__(
        self,
        ip: str,
        login: str,
        password: str,
        port: int = 443,
        verify: bool = False,
        request_timeout: int = 30,
    ):
        """
        Initialize instance.

        :param ip: Appliance IP address or FQDN.
        :param login: SSO user e.g. administrator@vsphere.local.
        :param password: Password.
        :param port: HTTPS port.
        :param verify: Verify appliance certificate.
        :param request_timeout: Timeout of single HTTP request in seconds.
        """
        self._ip = ip
        self._login = login
        self._password = password
        self._port = port
        self._verify = verify
        self._request_timeout = request_timeout
        self._session = None
        self._token = None

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self._ip}')"

    def __enter__(self) -> "ApplianceApi":
        """Use as context manager closing session on exit."""
        return self

    def __exit__(self, *exc_info) -> None:
        """Close session."""
        self.logout()

    @property
    def url(self) -> str:
        """Get base URL of appliance API."""
        return f"https://{self._ip}:{self._port}"

    @property
    def session(self) -> requests.Session:
        """Get HTTP session."""
        if self._session is None:
            session = requests.session()
            session.verify = self._verify
            session.trust_env = False
            if not self._verify:
                requests.packages.urllib3.disable_warnings()
            self._session = session
        return self._session

    def login(self) -> None:
        """
        Create API session.

        :raise ApplianceInvalidLogin: Credentials rejected.
        :raise ApplianceApiError: Session not created.
        """
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Creating API session on {self._ip}")
        self.session.headers.pop(SESSION_HEADER, None)
        resp = self.session.post(
            f"{self.url}/api/session",
            auth=(self._login, self._password),
            timeout=self._request_timeout,
        )
        if resp.status_code in (requests.codes.unauthorized, requests.codes.forbidden):
            raise ApplianceInvalidLogin(f"{self._ip}: login as {self._login} rejected", resp.status_code)
        if not resp.ok:
            raise ApplianceApiError(f"{self._ip}: unable to create session: {resp.text}", resp.status_code)
        self._token = resp.json()
        self.session.headers[SESSION_HEADER] = self._token

    def logout(self) -> None:
        """Delete API session."""
        if self._token is None:
            return
        try:
            self.session.delete(f"{self.url}/api/session", timeout=self._request_timeout)
        except _UNREACHABLE as e:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self._ip} logout failed: {e}")
        self._forget_session()

    def _forget_session(self) -> None:
        self._token = None
        self.session.headers.pop(SESSION_HEADER, None)

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Call API, session is created when missing and recreated once when expired.

        :param method: HTTP method.
        :param path: Path starting with /api.
        :param kwargs: Passed to requests.

        :return: Response.
        :raise ApplianceApiError: Non-success status.
        """
        if self._token is None:
            self.login()
        kwargs.setdefault("timeout", self._request_timeout)
        resp = self.session.request(method, f"{self.url}{path}", **kwargs)
        if resp.status_code == requests.codes.unauthorized:
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"{self._ip} session expired, logging in again")
            self.login()
            resp = self.session.request(method, f"{self.url}{path}", **kwargs)
        if not resp.ok:
            raise ApplianceApiError(f"{self._ip}: {method} {path} failed: {resp.text}", resp.status_code)
        return resp

    def health(self) -> str:
        """
        Get overall health of appliance.

        :return: One of green, yellow, orange, red, gray.
        """
        return self.request("GET", "/api/appliance/health/system").json()

    def probe_ready(self) -> ProbeResult:
        """
        Check appliance readiness once.

        Rejected credentials are fatal. Unreachable API, server errors and health other than green mean not ready.

        :return: Probe result with health as payload.
        """
        try:
            health = self.health()
        except ApplianceInvalidLogin as e:
            return ProbeResult.fatal(e)
        except ApplianceApiError as e:
            if e.status_code == requests.codes.forbidden:
                return ProbeResult.fatal(e)
            self._forget_session()
            return ProbeResult.not_ready(str(e))
        except _UNREACHABLE as e:
            self._forget_session()
            return ProbeResult.not_ready(f"{type(e).__name__}: {e}")
        if health == HEALTH_READY:
            return ProbeResult.ready(health)
        return ProbeResult.not_ready(f"health is {health}")

    def probe_down(self) -> ProbeResult:
        """
        Check once whether appliance stopped answering.

        :return: Probe result.
        """
        try:
            self.session.get(f"{self.url}/api/appliance/health/system", timeout=self._request_timeout)
        except _UNREACHABLE as e:
            return ProbeResult.ready(f"{type(e).__name__}: {e}")
        return ProbeResult.not_ready("API still answering")

    def wait_until_ready(
        self,
        timeout: float = APPLIANCE_READY_TIMEOUT,
        interval: float = APPLIANCE_READY_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> str:
        """
        Wait until appliance health is green.

        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: Health reported by appliance.
        :raise DeadlineExceeded: Appliance not ready in time.
        :raise ApplianceInvalidLogin: Credentials rejected.
        """
        return wait_until(
            self.probe_ready,
            timeout=timeout,
            interval=interval,
            description=f"appliance {self._ip}",
            clock=clock,
            sleeper=sleeper,
        )

    def wait_until_down(
        self,
        timeout: float = APPLIANCE_DOWN_TIMEOUT,
        interval: float = APPLIANCE_READY_INTERVAL,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """
        Wait until appliance API stops answering.

        :param timeout: Maximum wait in seconds.
        :param interval: Interval between checks.
        :param clock: Time source.
        :param sleeper: Sleep function.
        """
        wait_until(
            self.probe_down,
            timeout=timeout,
            interval=interval,
            description=f"appliance {self._ip} to go down",
            clock=clock,
            sleeper=sleeper,
        )

    def restart(
        self,
        reason: str = "Restart requested by mfd-vsphere",
        timeout: float = APPLIANCE_READY_TIMEOUT,
        down_timeout: float = APPLIANCE_DOWN_TIMEOUT,
        interval: float = APPLIANCE_READY_INTERVAL,
        confirm: Optional[Callable[[str], bool]] = None,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> str:
        """
        Reboot appliance and wait until it is ready again.

        :param reason: Reason stored in appliance log.
        :param timeout: Maximum wait for readiness in seconds.
        :param down_timeout: Maximum wait for shutdown in seconds.
        :param interval: Interval between checks.
        :param confirm: Optional confirmation callback.
        :param clock: Time source.
        :param sleeper: Sleep function.

        :return: Health reported by appliance after restart.
        """
        require_confirmation(f"Reboot appliance {self._ip}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Rebooting appliance {self._ip}")
        self.request("POST", "/api/appliance/shutdown", params={"action": "reboot"}, json={"delay": 0, "reason": reason})
        self._forget_session()
        self.wait_until_down(timeout=down_timeout, interval=interval, clock=clock, sleeper=sleeper)
        return self.wait_until_ready(timeout=timeout, interval=interval, clock=clock, sleeper=sleeper)

    def services(self) -> Dict[str, Dict[str, Any]]:
        """
        Get vCenter services.

        :return: Service info keyed by service name.
        """
        return self.request("GET", "/api/vcenter/services").json()

    def service_state(self, name: str) -> str:
        """
        Get state of vCenter service.

        :param name: Service name e.g. vpxd.

        :return: STARTED, STOPPED, STARTING or STOPPING.
        """
        return self.request("GET", f"/api/vcenter/services/{name}").json()["state"]

    def restart_service(self, name: str, confirm: Optional[Callable[[str], bool]] = None) -> None:
        """
        Restart vCenter service.

        :param name: Service name e.g. vpxd.
        :param confirm: Optional confirmation callback.
        """
        require_confirmation(f"Restart service {name} on {self._ip}?", confirm)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Restarting service {name} on {self._ip}")
        self.request("POST", f"/api/vcenter/services/{name}", params={"action": "restart"})
