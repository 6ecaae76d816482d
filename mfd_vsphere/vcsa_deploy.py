# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""vCenter Server Appliance deployment with vcsa-deploy."""
import json
import logging
import os
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from mfd_common_libs import log_levels, add_logging_level
from mfd_connect.local import LocalConnection
from .appliance import ApplianceApi
from .const import (
    APPLIANCE_READY_INTERVAL,
    APPLIANCE_READY_TIMEOUT,
    VCSA_DEPLOY_BINARY,
    VCSA_DEPLOY_TEMPLATE,
)
from .exceptions import VcsaDeployError, VSphereWrongParameter
from .utils import netmask_to_prefix, require_confirmation

if TYPE_CHECKING:
    from mfd_connect import Connection

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

DEPLOY_TIMEOUT = 3600


def patch_template(
    template: Dict[str, Any],
    esxi_host: str,
    esxi_user: str,
    esxi_password: str,
    datastore: str,
    name: str,
    ip: str,
    netmask: str,
    gateway: str,
    password: str,
    network: str = "VM Network",
    dns_servers: Optional[List[str]] = None,
    system_name: Optional[str] = None,
    ntp_servers: Optional[List[str]] = None,
    sso_domain: str = "vsphere.local",
    sso_password: Optional[str] = None,
    deployment_option: str = "tiny",
    thin_disk: bool = True,
    ssh_enable: bool = True,
    ceip: bool = False,
) -> Dict[str, Any]:
    """
    Fill installer template for embedded appliance deployed on ESXi host.

    :param template: Parsed embedded_vCSA_on_ESXi.json.
    :param esxi_host: Target ESXi address.
    :param esxi_user: Target ESXi user.
    :param esxi_password: Target ESXi password.
    :param datastore: Target datastore.
    :param name: Appliance VM name.
    :param ip: Appliance static IPv4 address.
    :param netmask: Netmask or prefix length.
    :param gateway: Default gateway.
    :param password: Appliance root password.
    :param network: Target portgroup.
    :param dns_servers: DNS servers, gateway is used when missing.
    :param system_name: FQDN or IP used as appliance system name, ip when missing.
    :param ntp_servers: NTP servers, host time sync is used when missing.
    :param sso_domain: SSO domain.
    :param sso_password: SSO administrator password, root password when missing.
    :param deployment_option: Appliance size e.g. tiny, small.
    :param thin_disk: Thin provision disks.
    :param ssh_enable: Enable SSH on appliance.
    :param ceip: Join Customer Experience Improvement Program.

    :return: Patched copy of template.
    """
    if not all([esxi_host, datastore, name, ip, gateway, password]):
        raise VSphereWrongParameter("ESXi host, datastore, name, ip, gateway and password are required")
    config = deepcopy(template)
    vcsa = config.setdefault("new_vcsa", {})
    vcsa.setdefault("esxi", {}).update(
        {
            "hostname": esxi_host,
            "username": esxi_user,
            "password": esxi_password,
            "deployment_network": network,
            "datastore": datastore,
        }
    )
    vcsa.setdefault("appliance", {}).update(
        {"thin_disk_mode": thin_disk, "deployment_option": deployment_option, "name": name}
    )
    vcsa.setdefault("network", {}).update(
        {
            "ip_family": "ipv4",
            "mode": "static",
            "system_name": system_name or ip,
            "ip": ip,
            "prefix": str(netmask_to_prefix(netmask)),
            "gateway": gateway,
            "dns_servers": dns_servers or [gateway],
        }
    )
    os_section = vcsa.setdefault("os", {})
    os_section.update({"password": password, "ssh_enable": ssh_enable})
    if ntp_servers:
        os_section.pop("time_tools_sync", None)
        os_section["ntp_servers"] = ",".join(ntp_servers)
    else:
        os_section.pop("ntp_servers", None)
        os_section["time_tools_sync"] = True
    vcsa.setdefault("sso", {}).update({"password": sso_password or password, "domain_name": sso_domain})
    config.setdefault("ceip", {}).setdefault("settings", {})["ceip_enabled"] = ceip
    return config


class VcsaDeployer(object):
    """Runs vcsa-deploy from mounted or extracted VCSA installer ISO."""

    def __init__(self, installer: str, connection: Optional["Connection"] = None):
        """
        Initialize instance.

        :param installer: Root directory of VCSA installer ISO.
        :param connection: Connection used to run installer, local by default.
        """
        self._installer = installer
        self._connection = connection if connection is not None else LocalConnection()

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self._installer}')"

    def load_template(self) -> Dict[str, Any]:
        """
        Read embedded appliance template shipped with installer.

        :return: Parsed template.
        :raise VcsaDeployError: Template missing or not valid JSON.
        """
        path = os.path.join(self._installer, *VCSA_DEPLOY_TEMPLATE.split("/"))
        try:
            with open(path) as file:
                return json.load(file)
        except (OSError, ValueError) as e:
            raise VcsaDeployError(f"Unable to read template {path}: {e}")

    @staticmethod
    def write_config(config: Dict[str, Any], path: str) -> str:
        """
        Write deployment configuration.

        :param config: Patched template.
        :param path: Output file.

        :return: Output file.
        """
        with open(path, mode="w", newline="\n") as file:
            json.dump(config, file, indent=4)
        return path

    def run(self, config_path: str, timeout: int = DEPLOY_TIMEOUT) -> str:
        """
        Run vcsa-deploy install.

        :param config_path: Deployment configuration.
        :param timeout: Maximum installer run time in seconds.

        :return: Installer output.
        :raise VcsaDeployError: Installer failed.
        """
        binary = os.path.join(self._installer, *VCSA_DEPLOY_BINARY.split("/"))
        command = f"{binary} install --accept-eula --acknowledge-ceip --no-ssl-certificate-verification {config_path}"
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Running {command}")
        result = self._connection.execute_command(command, expected_return_codes=None, timeout=timeout)
        if result.return_code != 0:
            raise VcsaDeployError(f"vcsa-deploy ended with code {result.return_code}: {result.stderr or result.stdout}")
        return result.stdout

    def deploy(
        self,
        config_path: str,
        wait: bool = True,
        timeout: float = APPLIANCE_READY_TIMEOUT,
        interval: float = APPLIANCE_READY_INTERVAL,
        confirm: Optional[Callable[[str], bool]] = None,
        **settings,
    ) -> Optional[str]:
        """
        Patch template, deploy appliance and wait until it is ready.

        :param config_path: Where to write deployment configuration.
        :param wait: Wait for appliance health to become green.
        :param timeout: Maximum wait for readiness in seconds.
        :param interval: Interval between readiness checks.
        :param confirm: Optional confirmation callback.
        :param settings: Keyword arguments of patch_template.

        :return: Appliance health when waited, otherwise None.
        """
        config = patch_template(self.load_template(), **settings)
        require_confirmation(
            f"Deploy appliance {settings['name']} on {settings['esxi_host']}/{settings['datastore']}?", confirm
        )
        self.write_config(config, config_path)
        self.run(config_path)
        if not wait:
            return None
        sso_domain = settings.get("sso_domain", "vsphere.local")
        appliance = ApplianceApi(
            settings.get("system_name") or settings["ip"],
            f"administrator@{sso_domain}",
            settings.get("sso_password") or settings["password"],
        )
        with appliance:
            return appliance.wait_until_ready(timeout=timeout, interval=interval)
