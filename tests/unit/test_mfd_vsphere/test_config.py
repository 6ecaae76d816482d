# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
from configparser import ConfigParser
from textwrap import dedent

import pytest

from mfd_vsphere.config import PASSWORD_ENV, get_config_value, load_settings
from mfd_vsphere.exceptions import VSphereWrongParameter

INI = dedent(
    """\
    [vcenter]
    host = vcsa01.lab.local
    user = administrator@vsphere.local
    password = VMware1!

    [esxi]
    host = 10.0.0.11
    user = root
    password = #unset
    port = 8443
    """
)


@pytest.fixture()
def ini_file(tmp_path):
    path = tmp_path / "vsphere.ini"
    path.write_text(INI)
    return str(path)


@pytest.fixture(autouse=True)
def no_password_env(monkeypatch):
    monkeypatch.delenv(PASSWORD_ENV, raising=False)


class TestConfig:
    def test_get_config_value(self):
        config = ConfigParser()
        config.read_string(INI)
        assert get_config_value(config, "vcenter", "host") == "vcsa01.lab.local"
        assert get_config_value(config, "esxi", "password", "fallback") == "fallback"
        assert get_config_value(config, "esxi", "missing", "fallback") == "fallback"
        assert get_config_value(config, "missing", "host") == ""

    def test_file(self, ini_file):
        settings = load_settings(ini_file)
        assert (settings.host, settings.user, settings.password, settings.port) == (
            "vcsa01.lab.local",
            "administrator@vsphere.local",
            "VMware1!",
            443,
        )

    def test_repr_hides_password(self, ini_file):
        assert "VMware1!" not in f"{load_settings(ini_file)}"

    def test_environment_password(self, ini_file, monkeypatch):
        monkeypatch.setenv(PASSWORD_ENV, "from-env")
        settings = load_settings(ini_file, section="esxi")
        assert settings.password == "from-env"
        assert settings.port == 8443

    def test_explicit_arguments_win(self, ini_file, monkeypatch):
        monkeypatch.setenv(PASSWORD_ENV, "from-env")
        settings = load_settings(ini_file, host="10.0.0.12", password="explicit", port=443)
        assert settings.host == "10.0.0.12"
        assert settings.password == "explicit"
        assert settings.port == 443

    def test_without_file(self):
        settings = load_settings(host="10.0.0.11", user="root", password="secret")
        assert settings.port == 443

    def test_missing_values(self, ini_file):
        with pytest.raises(VSphereWrongParameter) as exc_info:
            load_settings(ini_file, section="esxi")
        assert f"{exc_info.value}" == "Missing connection settings: password"

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(VSphereWrongParameter):
            load_settings(str(tmp_path / "missing.ini"))

    def test_invalid_port(self, tmp_path):
        path = tmp_path / "bad.ini"
        path.write_text("[vcenter]\nhost = a\nuser = b\npassword = c\nport = https\n")
        with pytest.raises(VSphereWrongParameter):
            load_settings(str(path))
