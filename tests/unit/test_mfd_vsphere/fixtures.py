# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT

from textwrap import dedent

import pytest
from mfd_connect import SSHConnection
from mfd_connect.base import ConnectionCompletedProcess
from pyVmomi import vim

from mfd_vsphere.appliance import ApplianceApi
from mfd_vsphere.host_api import ESXiHostAPI
from mfd_vsphere.vcenter.cluster import Cluster
from mfd_vsphere.vcenter.datacenter import Datacenter
from mfd_vsphere.vcenter.datastore import Datastore
from mfd_vsphere.vcenter.folder import Folder
from mfd_vsphere.vcenter.host import Host
from mfd_vsphere.vcenter.vcenter import VCenter
from mfd_vsphere.vcenter.virtual_adapter import VirtualAdapter
from mfd_vsphere.vcenter.virtual_machine import VirtualMachine
from mfd_vsphere.vcenter.virtual_switch.portgroup import VSPortgroup
from mfd_vsphere.vcenter.virtual_switch.vswitch import VSwitch


class FakeClock:
    """Manual time source, sleep advances time."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def vcenter():
    vcenter = VCenter("172.31.12.144", "user", "secret")
    return vcenter


@pytest.fixture()
def datacenter(vcenter):
    datacenter = Datacenter("PY-Datacenter", vcenter)
    return datacenter


@pytest.fixture()
def cluster(datacenter):
    cluster = Cluster("PY-Cluster", datacenter)
    return cluster


@pytest.fixture()
def standalone_host(datacenter):
    host = Host("PY-StandaloneHost", datacenter)
    return host


@pytest.fixture()
def cluster_host(datacenter, cluster):
    host = Host("PY-ClusterHost", datacenter, cluster)
    return host


@pytest.fixture()
def host_content(mocker, standalone_host):
    content = mocker.MagicMock()
    content.name = standalone_host.name
    mocker.patch.object(Host, "content", new_callable=mocker.PropertyMock, return_value=content)
    return content


@pytest.fixture()
def wait_for_tasks(mocker):
    return mocker.patch.object(VCenter, "wait_for_tasks")


@pytest.fixture()
def datastore(standalone_host):
    datastore = Datastore("PY-Datastore", standalone_host)
    return datastore


@pytest.fixture()
def folder(datacenter):
    folder = Folder("PY-Folder", datacenter)
    return folder


@pytest.fixture()
def virtual_adapter(standalone_host):
    virtual_adapter = VirtualAdapter("vmk1", standalone_host)
    return virtual_adapter


@pytest.fixture()
def virtual_machine(standalone_host):
    virtual_machine = VirtualMachine("PY-VirtualMachine", standalone_host)
    return virtual_machine


@pytest.fixture()
def vswitch(standalone_host):
    vswitch = VSwitch("vSwitch0", standalone_host)
    return vswitch


@pytest.fixture()
def vswitch_target(standalone_host):
    vswitch = VSwitch("vSwitch1", standalone_host)
    return vswitch


@pytest.fixture()
def vsportgroup(standalone_host):
    vsportgroup = VSPortgroup("PY-VSPortgroup", standalone_host)
    return vsportgroup


@pytest.fixture()
def network_config(mocker, host_content):
    """Two standard vSwitches, vmnic0/vmnic1 on vSwitch0, vmk0 on Management Network."""

    def make_vswitch(name, active, standby, unused):
        vs = mocker.MagicMock()
        vs.__class__ = vim.host.VirtualSwitch
        vs.name = name
        vs.spec.bridge.nicDevice = sorted(active + standby + unused)
        vs.spec.policy.nicTeaming.nicOrder.activeNic = active
        vs.spec.policy.nicTeaming.nicOrder.standbyNic = standby
        return vs

    vswitch0 = make_vswitch("vSwitch0", ["vmnic0"], ["vmnic1"], [])
    vswitch1 = make_vswitch("vSwitch1", [], [], [])
    vswitch1.spec.bridge = None

    def make_portgroup(name, vswitch_name, vlan):
        pg = mocker.MagicMock()
        pg.spec.name = name
        pg.spec.vswitchName = vswitch_name
        pg.spec.vlanId = vlan
        return pg

    def make_vnic(device, portgroup, ip, mask):
        vnic = mocker.MagicMock()
        vnic.device = device
        vnic.portgroup = portgroup
        vnic.spec.ip.ipAddress = ip
        vnic.spec.ip.subnetMask = mask
        vnic.spec.ip.dhcp = False
        vnic.spec.mtu = 1500
        return vnic

    network = host_content.config.network
    network.vswitch = [vswitch0, vswitch1]
    network.portgroup = [
        make_portgroup("Management Network", "vSwitch0", 0),
        make_portgroup("vMotion", "vSwitch1", 20),
    ]
    network.vnic = [
        make_vnic("vmk0", "Management Network", "172.31.0.82", "255.255.0.0"),
        make_vnic("vmk1", "vMotion", "169.254.1.1", "255.255.0.0"),
    ]
    pnic0, pnic1, pnic2 = mocker.MagicMock(), mocker.MagicMock(), mocker.MagicMock()
    pnic0.device, pnic1.device, pnic2.device = "vmnic0", "vmnic1", "vmnic2"
    network.pnic = [pnic0, pnic1, pnic2]
    return network


@pytest.fixture()
def host_api(mocker):
    host_api = ESXiHostAPI("172.31.0.56", "root", "secret")
    host_api_content = mocker.create_autospec(vim.ServiceInstanceContent)
    host_api._ESXiHostAPI__content = host_api_content
    host_api._ESXiHostAPI__service = True
    return host_api


@pytest.fixture()
def host_api_with_cert(mocker, host_api):
    host_api._ESXiHostAPI__content.rootFolder = object()
    host_api._ESXiHostAPI__content.sessionManager = mocker.create_autospec(vim.SessionManager)
    host_api._ESXiHostAPI__content.sessionManager.currentSession = True
    fake_host_config = mocker.create_autospec(vim.host.ConfigInfo)
    fake_host_config.certificate = hostapi_cert_bytes

    fake_host = mocker.create_autospec(vim.HostSystem)
    fake_host.config = fake_host_config

    fake_view = mocker.Mock()
    fake_view.view = [fake_host]

    host_api._ESXiHostAPI__content.viewManager = mocker.create_autospec(vim.view.ViewManager)
    host_api._ESXiHostAPI__content.viewManager.CreateContainerView = lambda x, y, z: fake_view

    return host_api


@pytest.fixture()
def appliance():
    return ApplianceApi("172.31.12.150", "administrator@vsphere.local", "secret")


@pytest.fixture()
def appliance_session(mocker, appliance):
    session = mocker.MagicMock()
    session.headers = {}
    appliance._session = session
    return session


def http_response(mocker, status_code, payload=None, text=""):
    resp = mocker.Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.json.return_value = payload
    resp.text = text
    return resp


@pytest.fixture()
def ssh_connection(mocker):
    connection = mocker.create_autospec(SSHConnection)
    connection.execute_command.return_value = ConnectionCompletedProcess(return_code=0, args="command", stdout="")
    return connection


def scsi_disk(name, size_gb, ssd=True):
    return vim.host.ScsiDisk(
        canonicalName=name,
        displayName=name,
        ssd=ssd,
        capacity=vim.host.DiskDimensions.Lba(block=size_gb * 1024 * 1024 * 2, blockSize=512),
    )


def disk_result(disk, state="eligible"):
    return vim.vsan.host.DiskResult(disk=disk, state=state)


@pytest.fixture()
def vcenter_named_entities():
    class DummyNamedThing:
        def __init__(self, name):
            self._name = name

        def __repr__(self):
            return self._name

        @property
        def name(self):
            return self._name

    names = ("Named-1", "Named-2", "Named-3")
    return [DummyNamedThing(n) for n in names]


@pytest.fixture()
def vcsa_template():
    return {
        "__version": "2.13.0",
        "new_vcsa": {
            "esxi": {
                "hostname": "<FQDN or IP address of the ESXi host on which to deploy the new appliance>",
                "username": "root",
                "password": "<Password of the ESXi host root user>",
                "deployment_network": "VM Network",
                "datastore": "<A specific ESXi host datastore>",
            },
            "appliance": {
                "thin_disk_mode": True,
                "deployment_option": "small",
                "name": "Embedded-vCenter-Server-Appliance",
            },
            "network": {
                "ip_family": "ipv4",
                "mode": "static",
                "system_name": "<FQDN or IP address for the appliance>",
                "ip": "<Static IP address>",
                "prefix": "<Network prefix length>",
                "gateway": "<Gateway IP address>",
                "dns_servers": ["<DNS Server IP Address>"],
            },
            "os": {"password": "<Appliance root password>", "ntp_servers": "time.nist.gov", "ssh_enable": False},
            "sso": {"password": "<vCenter Single Sign-On administrator password>", "domain_name": "vsphere.local"},
        },
        "ceip": {"settings": {"ceip_enabled": True}},
    }


boot_cfg = dedent(
    """\
    bootstate=0
    title=Loading ESXi installer
    timeout=5
    prefix=
    kernel=/b.b00
    kernelopt=runweasel cdromBoot
    modules=/jumpstrt.gz --- /useropts.gz --- /features.gz
    build=8.0.3-0.0.24022510
    updated=0
    """
)

hostapi_cert_bytes = list(
    dedent(
        """\
-----BEGIN CERTIFICATE-----
MIIDeDCCAmCgAwIBAgIULSI68CT+a61Fzi5UifInXs8SwgcwDQYJKoZIhvcNAQEL
BQAwZzELMAkGA1UEBhMCVVMxEzARBgNVBAgMCkNhbGlmb3JuaWExFjAUBgNVBAcM
DVNhbiBGcmFuY2lzY28xEzARBgNVBAoMCk15IENvbXBhbnkxFjAUBgNVBAMMDW15
Y29tcGFueS5jb20wHhcNMjUwNzA5MjEzMTA0WhcNMjYwNzA5MjEzMTA0WjBnMQsw
CQYDVQQGEwJVUzETMBEGA1UECAwKQ2FsaWZvcm5pYTEWMBQGA1UEBwwNU2FuIEZy
YW5jaXNjbzETMBEGA1UECgwKTXkgQ29tcGFueTEWMBQGA1UEAwwNbXljb21wYW55
LmNvbTCCASIwDQYJKoZIhvcNAQEBBQADggEPADCCAQoCggEBAMZyFhfQZxmJgHnB
5IgQQNHFRIRG0fcIIOscmQdsPAsFEoABAVWZMDBllVbyrzRm5yH08edL7d/bR2LV
OjsKTO6dD77hAEcXLU6D0byF4GLunky0XYfA+8kdF9RUUZLJY/Q4aNe2rswdB7eB
zSO0I4bOBIeOb5DfOK/rMYUHJzWHNOYUUf2w4H9p06wKAnX22gnUKIuDMOZ9D56Y
E62W1LMkVOgD5mqDN+oOxSR40M03gHSEk01H3biJJjgbvKD0VLEcJTyO7cD1TLPe
AlhyNGIW885IKzIBXi0zSwRD+qK6sJAHock2WkEh1fGzJW4K1hMsy0NuzzWzNWsj
OvXCfm8CAwEAAaMcMBowGAYDVR0RBBEwD4INbXljb21wYW55LmNvbTANBgkqhkiG
9w0BAQsFAAOCAQEAuqOaW3JONXZaN7DRrj7mzJON1Mviqi+sBag3yYs1YYL4/qxd
sukwbnSvLD6rGW8w9Ez/6K16dkLo4lMy3IsOMoecMrohDnDvtYxmcPmDknUjvPON
Bk5DAaaC7paIT0zcZ/UzZbd5MbJWPhggmcFGUVTl2ftsVb1jVm5O/sMaV785Y9Cd
+tEjfxfFmJ3WnInjElHTa16ZJreRPxGnUfBLonr7GUflMe+15C3CVJXgBxUUCvR1
ygm1smzjqu67KzXYAEibj4HBvlEtpOequkcAp6oD1L22OLXq4LH9DRkr2V2WKi3y
zwtSfd09AbWPe53xxdYlvsniRi1vaB3El+Zn7Q==
-----END CERTIFICATE-----
    """
    ).encode("UTF-8")
)
