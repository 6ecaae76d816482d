# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
import pytest

from mfd_vsphere.vcenter.cluster import Cluster
from mfd_vsphere.vcenter.exceptions import VCenterNotVsanCluster


class TestCluster:
    @pytest.fixture()
    def cluster_content(self, mocker):
        content = mocker.MagicMock()
        mocker.patch.object(Cluster, "content", new_callable=mocker.PropertyMock, return_value=content)
        return content

    def test_repr(self, cluster):
        assert f"{cluster}" == "Cluster('PY-Cluster')"

    def test_vsan_enabled(self, cluster, cluster_content):
        cluster_content.configurationEx.vsanConfigInfo.enabled = True
        assert cluster.is_vsan_enabled
        cluster.require_vsan()

    @pytest.mark.parametrize("enabled", [False, None])
    def test_vsan_disabled(self, cluster, cluster_content, enabled):
        cluster_content.configurationEx.vsanConfigInfo.enabled = enabled
        assert not cluster.is_vsan_enabled
        with pytest.raises(VCenterNotVsanCluster):
            cluster.require_vsan()

    def test_vsan_config_missing(self, cluster, cluster_content):
        cluster_content.configurationEx.vsanConfigInfo = None
        assert not cluster.is_vsan_enabled

    def test_enable_vsan(self, cluster, cluster_content, wait_for_tasks):
        cluster_content.configurationEx.vsanConfigInfo.enabled = False
        cluster.enable_vsan()
        spec = cluster_content.ReconfigureEx.call_args.kwargs["spec"]
        assert spec.vsanConfig.enabled is True
        assert spec.vsanConfig.defaultConfig.autoClaimStorage is False
        wait_for_tasks.assert_called_once()

    def test_enable_vsan_already_enabled(self, cluster, cluster_content, wait_for_tasks):
        cluster_content.configurationEx.vsanConfigInfo.enabled = True
        cluster.enable_vsan()
        cluster_content.ReconfigureEx.assert_not_called()

    def test_hosts(self, mocker, cluster, cluster_content):
        host = mocker.Mock()
        host.name = "172.31.0.56"
        cluster_content.host = [host]
        hosts = list(cluster.hosts)
        assert [h.name for h in hosts] == ["172.31.0.56"]
        assert hosts[0].cluster is cluster
