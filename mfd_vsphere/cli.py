# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Command line interface."""
import argparse
import logging
import sys
from typing import Callable, List, Optional

from mfd_common_libs import log_levels
from mfd_connect import SSHConnection
from .appliance import ApplianceApi
from .config import load_settings
from .const import (
    APPLIANCE_READY_INTERVAL,
    APPLIANCE_READY_TIMEOUT,
    GUEST_PROCESS_INTERVAL,
    GUEST_PROCESS_TIMEOUT,
    HOST_BOOT_INTERVAL,
    HOST_BOOT_TIMEOUT,
)
from .exceptions import VSphereNotFound, VSphereWrongParameter
from .guest import GuestOperations
from .host_api import ESXiHostAPI
from .install_media import InstallMedia, render_kickstart
from .vcenter.vcenter import VCenter
from .vcsa_deploy import VcsaDeployer
from .vsan import VsanHost

logger = logging.getLogger(__name__)


def confirm_prompt(message: str) -> bool:
    """
    Ask operator on terminal.

    :param message: Question.

    :return: True when operator answered yes.
    """
    return input(f"{message} [y/N] ").strip().lower() in ("y", "yes")


def _confirm(args: argparse.Namespace) -> Optional[Callable[[str], bool]]:
    return None if args.yes else confirm_prompt


def _settings(args: argparse.Namespace, section: str = "vcenter"):
    return load_settings(
        path=args.config,
        section=args.section or section,
        host=args.server,
        user=args.user,
        password=args.password,
        port=args.port,
    )


def _vcenter(args: argparse.Namespace) -> VCenter:
    settings = _settings(args)
    return VCenter(settings.host, settings.user, settings.password, settings.port)


def _datacenter(vcenter: VCenter, name: Optional[str]):
    if name:
        return vcenter.get_datacenter_by_name(name)
    datacenter = next(iter(vcenter.datacenters), None)
    if datacenter is None:
        raise VSphereNotFound(f"No datacenter in {vcenter}")
    return datacenter


def cmd_rename_datastore(args: argparse.Namespace) -> None:
    """Rename the only datastore matching pattern."""
    with _vcenter(args) as vcenter:
        if args.host:
            datastore = vcenter.get_host_by_name(args.host).get_datastore_by_wildcard(args.pattern)
        else:
            datastore = _datacenter(vcenter, args.datacenter).get_datastore_by_wildcard(args.pattern)
        datastore.rename(args.new_name, confirm=_confirm(args))


def cmd_rename_folder(args: argparse.Namespace) -> None:
    """Rename the only folder matching pattern."""
    with _vcenter(args) as vcenter:
        folder = _datacenter(vcenter, args.datacenter).get_folder_by_wildcard(args.pattern)
        folder.rename(args.new_name, confirm=_confirm(args))


def cmd_configure_ntp(args: argparse.Namespace) -> None:
    """Configure NTP servers on host."""
    with _vcenter(args) as vcenter:
        host = vcenter.get_host_by_name(args.host)
        host.configure_ntp(args.servers, start_service=not args.no_start, confirm=_confirm(args))


def cmd_move_uplink(args: argparse.Namespace) -> None:
    """Move physical adapter to another vSwitch."""
    with _vcenter(args) as vcenter:
        host = vcenter.get_host_by_name(args.host)
        source = host.get_vswitch_by_uplink(args.nic)
        if source is None:
            raise VSphereWrongParameter(f"{args.nic} is not an uplink of any vSwitch on {args.host}")
        target = host.get_vswitch_by_name(args.target)
        source.move_uplink(args.nic, target, standby=args.standby, confirm=_confirm(args))


def cmd_move_vmk(args: argparse.Namespace) -> None:
    """Move VMkernel adapter to another portgroup."""
    with _vcenter(args) as vcenter:
        host = vcenter.get_host_by_name(args.host)
        host.get_virtual_adapter_by_name(args.vmk).move_to_portgroup(args.portgroup, confirm=_confirm(args))


def cmd_add_vmk(args: argparse.Namespace) -> None:
    """Add VMkernel adapter to standard portgroup, creating portgroup when missing."""
    with _vcenter(args) as vcenter:
        vswitch = vcenter.get_host_by_name(args.host).get_vswitch_by_name(args.vswitch)
        portgroup = vswitch.add_portgroup(args.portgroup, vlan=args.vlan)
        adapter = portgroup.add_virtual_adapter(mtu=args.mtu, ip=args.ip, mask=args.netmask)
        logger.info(f"Added {adapter.name} to portgroup {portgroup.name}")


def cmd_vsan_bootstrap(args: argparse.Namespace) -> None:
    """Bootstrap single host vSAN or claim disks in vSAN cluster."""
    with _vcenter(args) as vcenter:
        host = vcenter.get_host_by_name(args.host)
        connection = SSHConnection(ip=args.ssh_ip or args.host, username=args.ssh_user, password=args.ssh_password)
        vsan = VsanHost(host, connection)
        if args.cluster_member:
            cache, capacity = vsan.claim_in_cluster(min_size=args.min_size)
        else:
            cache, capacity = vsan.bootstrap(min_size=args.min_size, confirm=_confirm(args))
        logger.info(f"Cache: {cache.canonicalName}, capacity: {', '.join(d.canonicalName for d in capacity)}")


def cmd_install_media(args: argparse.Namespace) -> None:
    """Build unattended ESXi installer ISO."""
    kickstart = render_kickstart(
        args.root_password,
        hostname=args.hostname,
        ip=args.ip,
        netmask=args.netmask,
        gateway=args.gateway,
        nameserver=args.nameserver,
        vlan=args.vlan,
        device=args.device,
        enable_ssh=args.enable_ssh,
    )
    iso = InstallMedia(args.source).prepare(kickstart, args.output)
    logger.info(f"ISO created: {iso}")


def cmd_vcsa_deploy(args: argparse.Namespace) -> None:
    """Deploy vCenter appliance on ESXi host."""
    health = VcsaDeployer(args.installer).deploy(
        args.output,
        wait=not args.no_wait,
        timeout=args.timeout,
        confirm=_confirm(args),
        esxi_host=args.esxi_host,
        esxi_user=args.esxi_user,
        esxi_password=args.esxi_password,
        datastore=args.datastore,
        network=args.network,
        name=args.name,
        ip=args.ip,
        netmask=args.netmask,
        gateway=args.gateway,
        dns_servers=args.dns,
        system_name=args.system_name,
        ntp_servers=args.ntp,
        password=args.root_password,
        sso_domain=args.sso_domain,
        sso_password=args.sso_password,
        deployment_option=args.size,
    )
    logger.info(f"Appliance deployed, health: {health}")


def _appliance(args: argparse.Namespace) -> ApplianceApi:
    settings = _settings(args, section="appliance")
    return ApplianceApi(settings.host, settings.user, settings.password, settings.port)


def cmd_appliance_wait(args: argparse.Namespace) -> None:
    """Wait for appliance health to become green."""
    with _appliance(args) as appliance:
        appliance.wait_until_ready(timeout=args.timeout, interval=args.interval)


def cmd_appliance_restart(args: argparse.Namespace) -> None:
    """Reboot appliance or restart one of its services."""
    with _appliance(args) as appliance:
        if args.service:
            appliance.restart_service(args.service, confirm=_confirm(args))
        else:
            appliance.restart(timeout=args.timeout, interval=args.interval, confirm=_confirm(args))


def _host_api(args: argparse.Namespace) -> ESXiHostAPI:
    settings = _settings(args, section="esxi")
    return ESXiHostAPI(settings.host, settings.user, settings.password, settings.port)


def cmd_host_wait(args: argparse.Namespace) -> None:
    """Wait until ESXi host accepts API login."""
    version = _host_api(args).wait_for_boot(timeout=args.timeout, interval=args.interval)
    logger.info(f"Host is up, API version {version}")


def cmd_host_reboot(args: argparse.Namespace) -> None:
    """Reboot ESXi host and wait until it is back."""
    version = _host_api(args).reboot_and_wait(timeout=args.timeout, interval=args.interval, confirm=_confirm(args))
    logger.info(f"Host is up, API version {version}")


def cmd_guest_run(args: argparse.Namespace) -> None:
    """Run program in guest."""
    with _vcenter(args) as vcenter:
        vm = vcenter.get_host_by_name(args.host).get_vm(args.vm)
        guest = GuestOperations(vm, args.guest_user, args.guest_password)
        guest.run(args.program, " ".join(args.arguments), timeout=args.timeout, interval=args.interval)


def _add_wait_options(parser: argparse.ArgumentParser, timeout: int, interval: int) -> None:
    parser.add_argument("--timeout", type=int, default=timeout, help="maximum wait in seconds")
    parser.add_argument("--interval", type=int, default=interval, help="seconds between checks")


def build_parser() -> argparse.ArgumentParser:
    """
    Build argument parser.

    :return: Parser with one subcommand per operation.
    """
    parser = argparse.ArgumentParser(prog="mfd-vsphere", description="vSphere, vSAN and ESXi lifecycle helpers")
    parser.add_argument("--config", help="INI file with connection settings")
    parser.add_argument("--section", help="INI section, default depends on command")
    parser.add_argument("--server", help="vCenter, ESXi or appliance address")
    parser.add_argument("--user", help="login name")
    parser.add_argument("--password", help="password, MFD_VSPHERE_PASSWORD is used when missing")
    parser.add_argument("--port", type=int, help="HTTPS port")
    parser.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")
    parser.add_argument("-v", "--verbose", action="store_true", help="show module debug messages")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sub = subparsers.add_parser("rename-datastore", help="rename datastore matched by wildcard")
    sub.add_argument("pattern")
    sub.add_argument("new_name")
    scope = sub.add_mutually_exclusive_group()
    scope.add_argument("--host", help="search datastores of this host")
    scope.add_argument("--datacenter", help="search datastores of this datacenter")
    sub.set_defaults(func=cmd_rename_datastore)

    sub = subparsers.add_parser("rename-folder", help="rename folder matched by wildcard")
    sub.add_argument("pattern")
    sub.add_argument("new_name")
    sub.add_argument("--datacenter")
    sub.set_defaults(func=cmd_rename_folder)

    sub = subparsers.add_parser("configure-ntp", help="set NTP servers and restart ntpd")
    sub.add_argument("--host", required=True)
    sub.add_argument("servers", nargs="+")
    sub.add_argument("--no-start", action="store_true", help="do not change ntpd policy and state")
    sub.set_defaults(func=cmd_configure_ntp)

    sub = subparsers.add_parser("move-uplink", help="move physical adapter between standard vSwitches")
    sub.add_argument("--host", required=True)
    sub.add_argument("nic")
    sub.add_argument("target", help="destination vSwitch")
    sub.add_argument("--standby", action="store_true")
    sub.set_defaults(func=cmd_move_uplink)

    sub = subparsers.add_parser("move-vmk", help="move VMkernel adapter to another portgroup")
    sub.add_argument("--host", required=True)
    sub.add_argument("vmk")
    sub.add_argument("portgroup")
    sub.set_defaults(func=cmd_move_vmk)

    sub = subparsers.add_parser("add-vmk", help="add VMkernel adapter to standard portgroup")
    sub.add_argument("--host", required=True)
    sub.add_argument("vswitch")
    sub.add_argument("portgroup")
    sub.add_argument("--vlan", type=int, default=0)
    sub.add_argument("--mtu", type=int, default=1500)
    sub.add_argument("--ip", help="static IPv4 address, DHCP when missing")
    sub.add_argument("--netmask", help="netmask or prefix length")
    sub.set_defaults(func=cmd_add_vmk)

    sub = subparsers.add_parser("vsan-bootstrap", help="create single host vSAN datastore")
    sub.add_argument("--host", required=True)
    sub.add_argument("--ssh-ip", help="host address for SSH, inventory name when missing")
    sub.add_argument("--ssh-user", default="root")
    sub.add_argument("--ssh-password", required=True)
    sub.add_argument("--min-size", type=int, default=0, help="ignore disks smaller than this many bytes")
    sub.add_argument("--cluster-member", action="store_true", help="only claim disks, host is in vSAN cluster")
    sub.set_defaults(func=cmd_vsan_bootstrap)

    sub = subparsers.add_parser("install-media", help="build unattended ESXi installer ISO")
    sub.add_argument("--source", required=True, help="extracted installer ISO directory")
    sub.add_argument("--output", required=True, help="ISO to create")
    sub.add_argument("--root-password", required=True)
    sub.add_argument("--hostname")
    sub.add_argument("--ip")
    sub.add_argument("--netmask")
    sub.add_argument("--gateway")
    sub.add_argument("--nameserver")
    sub.add_argument("--vlan", type=int)
    sub.add_argument("--device", default="vmnic0")
    sub.add_argument("--enable-ssh", action="store_true")
    sub.set_defaults(func=cmd_install_media)

    sub = subparsers.add_parser("vcsa-deploy", help="deploy vCenter appliance on ESXi host")
    sub.add_argument("--installer", required=True, help="VCSA installer ISO root")
    sub.add_argument("--output", required=True, help="deployment JSON to write")
    sub.add_argument("--esxi-host", required=True)
    sub.add_argument("--esxi-user", default="root")
    sub.add_argument("--esxi-password", required=True)
    sub.add_argument("--datastore", required=True)
    sub.add_argument("--network", default="VM Network")
    sub.add_argument("--name", required=True)
    sub.add_argument("--ip", required=True)
    sub.add_argument("--netmask", required=True)
    sub.add_argument("--gateway", required=True)
    sub.add_argument("--dns", nargs="+")
    sub.add_argument("--ntp", nargs="+")
    sub.add_argument("--system-name")
    sub.add_argument("--root-password", required=True)
    sub.add_argument("--sso-domain", default="vsphere.local")
    sub.add_argument("--sso-password")
    sub.add_argument("--size", default="tiny")
    sub.add_argument("--no-wait", action="store_true")
    sub.add_argument("--timeout", type=int, default=APPLIANCE_READY_TIMEOUT)
    sub.set_defaults(func=cmd_vcsa_deploy)

    sub = subparsers.add_parser("appliance-wait", help="wait for appliance health to become green")
    _add_wait_options(sub, APPLIANCE_READY_TIMEOUT, APPLIANCE_READY_INTERVAL)
    sub.set_defaults(func=cmd_appliance_wait)

    sub = subparsers.add_parser("appliance-restart", help="reboot appliance or restart service")
    sub.add_argument("--service", help="restart only this vCenter service")
    _add_wait_options(sub, APPLIANCE_READY_TIMEOUT, APPLIANCE_READY_INTERVAL)
    sub.set_defaults(func=cmd_appliance_restart)

    sub = subparsers.add_parser("host-wait", help="wait until ESXi host accepts API login")
    _add_wait_options(sub, HOST_BOOT_TIMEOUT, HOST_BOOT_INTERVAL)
    sub.set_defaults(func=cmd_host_wait)

    sub = subparsers.add_parser("host-reboot", help="reboot ESXi host and wait until it is back")
    _add_wait_options(sub, HOST_BOOT_TIMEOUT, HOST_BOOT_INTERVAL)
    sub.set_defaults(func=cmd_host_reboot)

    sub = subparsers.add_parser("guest-run", help="run program in guest through VMware Tools")
    sub.add_argument("--host", required=True)
    sub.add_argument("--vm", required=True)
    sub.add_argument("--guest-user", required=True)
    sub.add_argument("--guest-password", required=True)
    sub.add_argument("program")
    sub.add_argument("arguments", nargs=argparse.REMAINDER)
    _add_wait_options(sub, GUEST_PROCESS_TIMEOUT, GUEST_PROCESS_INTERVAL)
    sub.set_defaults(func=cmd_guest_run)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run command line.

    :param argv: Arguments, sys.argv when missing.

    :return: Exit code.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=log_levels.MODULE_DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except Exception as e:
        logger.error(f"{args.command} failed: {type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
