# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Constants shared across modules."""

APPLIANCE_READY_TIMEOUT = 1800
APPLIANCE_READY_INTERVAL = 30
APPLIANCE_DOWN_TIMEOUT = 600

HOST_BOOT_TIMEOUT = 1200
HOST_BOOT_INTERVAL = 15
HOST_DOWN_TIMEOUT = 600

GUEST_PROCESS_TIMEOUT = 600
GUEST_PROCESS_INTERVAL = 5

NTP_SERVICE = "ntpd"
SSH_SERVICE = "TSM-SSH"

KICKSTART_FILE = "KS.CFG"
BOOT_CFG_FILES = ("BOOT.CFG", "EFI/BOOT/BOOT.CFG")

VSAN_POLICY_CLASSES = ("cluster", "vdisk", "vmnamespace", "vmswap", "vmem")
VSAN_SINGLE_HOST_POLICY = '(("hostFailuresToTolerate" i0) ("forceProvisioning" i1))'

VCSA_DEPLOY_TEMPLATE = "vcsa-cli-installer/templates/install/embedded_vCSA_on_ESXi.json"
VCSA_DEPLOY_BINARY = "vcsa-cli-installer/lin64/vcsa-deploy"
