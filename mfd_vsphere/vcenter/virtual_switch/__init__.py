# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Standard virtual switch wrappers."""
