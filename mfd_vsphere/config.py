# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Connection settings read from INI file."""
import logging
import os
from configparser import ConfigParser
from typing import Optional

from mfd_common_libs import log_levels, add_logging_level
from .exceptions import VSphereWrongParameter

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

PASSWORD_ENV = "MFD_VSPHERE_PASSWORD"
DEFAULT_PORT = 443


class ConnectionSettings(object):
    """Address and credentials of vCenter, ESXi host or appliance."""

    def __init__(self, host: str, user: str, password: str, port: int = DEFAULT_PORT):
        """
        Initialize instance.

        :param host: Address.
        :param user: Login name.
        :param password: Password.
        :param port: HTTPS port.
        """
        self.host = host
        self.user = user
        self.password = password
        self.port = port

    def __repr__(self):
        """Get string representation, password is hidden."""
        return f"{self.__class__.__name__}('{self.user}@{self.host}:{self.port}')"


def get_config_value(config: ConfigParser, section: str, option: str, fallback: str = "") -> str:
    """
    Get option value, commented out value is treated as missing.

    :param config: Parsed configuration.
    :param section: Section name.
    :param option: Option name.
    :param fallback: Value used when option is missing.

    :return: Option value or fallback.
    """
    if not config.has_option(section, option):
        return fallback
    value = config.get(section, option).strip()
    if value.startswith(("#", ";")):
        return fallback
    return value


def load_settings(
    path: Optional[str] = None,
    section: str = "vcenter",
    host: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    port: Optional[int] = None,
) -> ConnectionSettings:
    """
    Build connection settings.

    Explicit arguments win over environment, environment wins over file.

    :param path: INI file, optional.
    :param section: Section of INI file.
    :param host: Address override.
    :param user: Login override.
    :param password: Password override.
    :param port: Port override.

    :return: Connection settings.
    :raise VSphereWrongParameter: File unreadable or host, user or password missing.
    """
    config = ConfigParser()
    if path:
        if not config.read(path):
            raise VSphereWrongParameter(f"Unable to read configuration file {path}")
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Loaded section [{section}] from {path}")

    host = host or get_config_value(config, section, "host")
    user = user or get_config_value(config, section, "user")
    password = password or os.environ.get(PASSWORD_ENV) or get_config_value(config, section, "password")
    if port is None:
        raw_port = get_config_value(config, section, "port", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise VSphereWrongParameter(f"Invalid port: {raw_port}")

    missing = [name for name, value in (("host", host), ("user", user), ("password", password)) if not value]
    if missing:
        raise VSphereWrongParameter(f"Missing connection settings: {', '.join(missing)}")
    return ConnectionSettings(host, user, password, port)
