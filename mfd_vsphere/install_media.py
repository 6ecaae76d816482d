# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Unattended ESXi installation media."""
import logging
import os
import re
import shlex
from textwrap import dedent
from typing import Optional, TYPE_CHECKING

from mfd_common_libs import log_levels, add_logging_level
from mfd_connect.local import LocalConnection
from mfd_connect.util.rpc_copy_utils import copy
from .const import BOOT_CFG_FILES, KICKSTART_FILE
from .exceptions import InstallMediaError, VSphereWrongParameter
from .utils import netmask_to_prefix, prefix_to_netmask

if TYPE_CHECKING:
    from mfd_connect import Connection

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

kickstart_template = dedent(
    """\
    vmaccepteula
    rootpw {password}
    install {disk} --overwritevmfs
    {network}
    reboot
    """
)

firstboot_ssh_template = dedent(
    """\

    %firstboot --interpreter=busybox
    vim-cmd hostsvc/enable_ssh
    vim-cmd hostsvc/start_ssh
    """
)

KERNELOPT_RE = re.compile(r"^kernelopt=.*$", re.MULTILINE)


def render_kickstart(
    password: str,
    hostname: Optional[str] = None,
    ip: Optional[str] = None,
    netmask: Optional[str] = None,
    gateway: Optional[str] = None,
    nameserver: Optional[str] = None,
    vlan: Optional[int] = None,
    device: str = "vmnic0",
    disk: str = "--firstdisk",
    enable_ssh: bool = False,
) -> str:
    """
    Render kickstart for scripted ESXi installation.

    Without ip, netmask and gateway management network uses DHCP.

    :param password: Root password.
    :param hostname: Host FQDN.
    :param ip: Static management IP.
    :param netmask: Netmask or prefix length.
    :param gateway: Default gateway.
    :param nameserver: DNS server.
    :param vlan: Management VLAN ID.
    :param device: Management uplink.
    :param disk: Install target option e.g. --firstdisk or --disk=mpx.vmhba0:C0:T0:L0.
    :param enable_ssh: Enable and start SSH on first boot.

    :return: Kickstart content.
    :raise VSphereWrongParameter: Incomplete static configuration or empty password.
    """
    if not password:
        raise VSphereWrongParameter("Root password is required")

    static = [ip, netmask, gateway]
    if all(static):
        network = (
            f"network --bootproto=static --device={device} --ip={ip} "
            f"--netmask={prefix_to_netmask(netmask_to_prefix(netmask))} --gateway={gateway}"
        )
    elif not any(static):
        network = f"network --bootproto=dhcp --device={device}"
    else:
        raise VSphereWrongParameter("Static network requires ip, netmask and gateway")

    if hostname:
        network += f" --hostname={hostname}"
    if nameserver:
        network += f" --nameserver={nameserver}"
    if vlan:
        network += f" --vlanid={vlan}"

    content = kickstart_template.format(password=password, disk=disk, network=network)
    if enable_ssh:
        content += firstboot_ssh_template
    return content


def patch_boot_cfg(content: str, kickstart: str = f"cdrom:/{KICKSTART_FILE}") -> str:
    """
    Point kernel options of boot.cfg at kickstart file.

    :param content: Original boot.cfg content.
    :param kickstart: Kickstart location.

    :return: Patched content.
    """
    line = f"kernelopt=ks={kickstart}"
    if KERNELOPT_RE.search(content):
        return KERNELOPT_RE.sub(line, content)
    return content.rstrip("\n") + f"\n{line}\n"


class InstallMedia(object):
    """Installation media built from extracted ESXi ISO directory."""

    def __init__(self, source: str, connection: Optional["Connection"] = None):
        """
        Initialize instance.

        :param source: Directory with extracted ESXi installer ISO.
        :param connection: Connection used to run genisoimage, local by default.
        """
        self._source = source
        self._connection = connection if connection is not None else LocalConnection()

    def __repr__(self):
        """Get string representation."""
        return f"{self.__class__.__name__}('{self._source}')"

    @property
    def source(self) -> str:
        """Get source directory."""
        return self._source

    def write_kickstart(self, content: str) -> str:
        """
        Write kickstart to media root.

        :param content: Kickstart content.

        :return: Path to kickstart file.
        """
        path = os.path.join(self._source, KICKSTART_FILE)
        with open(path, mode="w", newline="\n") as file:
            file.write(content)
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Kickstart written to {path}")
        return path

    def patch_boot_configs(self) -> None:
        """
        Patch BIOS and UEFI boot.cfg to load kickstart.

        :raise InstallMediaError: Boot configuration missing.
        """
        for name in BOOT_CFG_FILES:
            path = os.path.join(self._source, *name.split("/"))
            if not os.path.isfile(path):
                raise InstallMediaError(f"Boot configuration {name} not found in {self._source}")
            with open(path) as file:
                content = file.read()
            with open(path, mode="w", newline="\n") as file:
                file.write(patch_boot_cfg(content))
            logger.log(level=log_levels.MODULE_DEBUG, msg=f"Patched {path}")

    def build_iso(self, output: str, volume_id: str = "ESXI") -> str:
        """
        Build BIOS and UEFI bootable ISO from media directory.

        :param output: Path of ISO to create.
        :param volume_id: ISO volume label.

        :return: Path to ISO.
        :raise InstallMediaError: genisoimage failed.
        """
        command = (
            f"genisoimage -relaxed-filenames -J -R -V {shlex.quote(volume_id)} -o {shlex.quote(output)} "
            "-b ISOLINUX.BIN -c BOOT.CAT -no-emul-boot -boot-load-size 4 -boot-info-table "
            f"-eltorito-alt-boot -e EFIBOOT.IMG -no-emul-boot {shlex.quote(self._source)}"
        )
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Building ISO {output}")
        result = self._connection.execute_command(command, expected_return_codes=None)
        if result.return_code != 0:
            raise InstallMediaError(f"genisoimage ended with code {result.return_code}: {result.stderr}")
        return output

    def prepare(self, kickstart: str, output: str, volume_id: str = "ESXI") -> str:
        """
        Write kickstart, patch boot configuration and build ISO.

        :param kickstart: Kickstart content.
        :param output: Path of ISO to create.
        :param volume_id: ISO volume label.

        :return: Path to ISO.
        """
        self.write_kickstart(kickstart)
        self.patch_boot_configs()
        return self.build_iso(output, volume_id=volume_id)

    def upload(self, iso: str, dst_conn: "Connection", target: str) -> None:
        """
        Copy built ISO to another machine e.g. datastore of ESXi host.

        :param iso: Local ISO path.
        :param dst_conn: Destination connection.
        :param target: Destination path e.g. /vmfs/volumes/datastore1/esxi.iso.
        """
        logger.log(level=log_levels.MODULE_DEBUG, msg=f"Uploading {iso} to {target}")
        copy(src_conn=self._connection, dst_conn=dst_conn, source=iso, target=target)
