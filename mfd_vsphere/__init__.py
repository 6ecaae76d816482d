# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""vSphere, vSAN and ESXi lifecycle helpers."""
