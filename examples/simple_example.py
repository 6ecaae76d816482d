# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Simple example."""

import logging

from mfd_connect import SSHConnection

from mfd_vsphere.appliance import ApplianceApi
from mfd_vsphere.host_api import ESXiHostAPI
from mfd_vsphere.install_media import InstallMedia, render_kickstart
from mfd_vsphere.vcenter.vcenter import VCenter
from mfd_vsphere.vsan import VsanHost

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.DEBUG)


if __name__ == "__main__":
    kickstart = render_kickstart(
        "***", hostname="esxi01.lab.local", ip="172.31.0.50", netmask="16", gateway="172.31.0.1", enable_ssh=True
    )
    InstallMedia("/srv/esxi-8.0u3").prepare(kickstart, "/srv/esxi01.iso")

    host_api = ESXiHostAPI("172.31.0.50", "root", "***")
    print(host_api.wait_for_boot(timeout=1800, interval=30))
    print(host_api.fingerprint)

    with VCenter("172.31.0.50", "root", "***") as esxi:
        host = esxi.get_host_by_name("esxi01.lab.local")
        host.get_datastore_by_wildcard("datastore1*").rename("esxi01-local")
        host.configure_ntp(["172.31.0.2"])

        vswitch1 = host.add_vswitch("vSwitch1", mtu=9000)
        host.get_vswitch_by_uplink("vmnic1").move_uplink("vmnic1", vswitch1)
        vswitch1.add_portgroup("vMotion", vlan=20)
        host.get_virtual_adapter_by_name("vmk1").move_to_portgroup("vMotion")

        connection = SSHConnection(ip="172.31.0.50", username="root", password="***")
        cache, capacity = VsanHost(host, connection).bootstrap()
        print(cache.canonicalName, [disk.canonicalName for disk in capacity])

    with ApplianceApi("172.31.0.60", "administrator@vsphere.local", "***") as appliance:
        print(appliance.wait_until_ready(timeout=1800, interval=30))
        print(appliance.service_state("vpxd"))
