# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
import pytest

from mfd_vsphere.exceptions import VSphereMatchError
from mfd_vsphere.vcenter.datacenter import Datacenter
from mfd_vsphere.vcenter.datastore import Datastore
from mfd_vsphere.vcenter.vcenter import VCenter


class TestDatacenter:
    def test_repr(self, datacenter):
        assert f"{datacenter}" == "Datacenter('PY-Datacenter')"

    def test_datastores_deduplicated(self, mocker, datacenter):
        host1, host2 = mocker.Mock(), mocker.Mock()
        host1.datastores = [Datastore("shared-nfs", host1), Datastore("local-1", host1)]
        host2.datastores = [Datastore("shared-nfs", host2), Datastore("local-2", host2)]
        mocker.patch.object(Datacenter, "hosts", new_callable=mocker.PropertyMock, return_value=[host1, host2])

        assert [ds.name for ds in datacenter.datastores] == ["shared-nfs", "local-1", "local-2"]
        assert datacenter.get_datastore_by_wildcard("shared*").name == "shared-nfs"
        with pytest.raises(VSphereMatchError):
            datacenter.get_datastore_by_wildcard("local-*")

    def test_folder_by_wildcard(self, mocker, datacenter):
        dc_content = mocker.Mock()
        mocker.patch.object(Datacenter, "content", new_callable=mocker.PropertyMock, return_value=dc_content)

        def make_folder(name, parent):
            folder = mocker.Mock()
            folder.name = name
            folder.parent = parent
            return folder

        vm_root = make_folder("vm", dc_content)
        views = [vm_root, make_folder("Templates", vm_root), make_folder("Lab-VMs", vm_root)]
        create_view = mocker.patch.object(VCenter, "create_view", return_value=views)

        assert [f.name for f in datacenter.folders] == ["Templates", "Lab-VMs"]
        assert datacenter.get_folder_by_wildcard("Lab*").name == "Lab-VMs"
        create_view.assert_called_with(dc_content, mocker.ANY, True)

    def test_folder_by_wildcard_no_match(self, mocker, datacenter):
        mocker.patch.object(Datacenter, "content", new_callable=mocker.PropertyMock)
        mocker.patch.object(VCenter, "create_view", return_value=[])
        with pytest.raises(VSphereMatchError):
            datacenter.get_folder_by_wildcard("vm")
