# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Module for exceptions."""
import subprocess
from typing import Optional


class VSphereNotFound(Exception):
    """Unable to find the object requested."""


class VSphereWrongParameter(Exception):
    """Wrong parameter supplied."""


class VSphereRuntimeError(Exception):
    """Error during execution."""


class VSphereMatchError(Exception):
    """Name pattern did not match exactly one object."""


class DeadlineExceeded(Exception):
    """Readiness probe did not succeed before the deadline."""


class OperationCancelled(Exception):
    """Operation declined at confirmation prompt."""


class ESXiAPISocketError(Exception):
    """Unable to communicate with API."""


class ESXiAPIInvalidLogin(Exception):
    """Wrong credentials."""


class ApplianceApiError(Exception):
    """Appliance REST API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """
        Initialize instance.

        :param message: Exception message.
        :param status_code: HTTP status returned by appliance.
        """
        super().__init__(message)
        self.status_code = status_code


class ApplianceInvalidLogin(ApplianceApiError):
    """Appliance rejected credentials."""


class VsanSetupError(Exception):
    """vSAN bootstrap failed."""


class InstallMediaError(Exception):
    """Unable to prepare installation media."""


class VcsaDeployError(Exception):
    """Appliance deployment failed."""


class GuestOperationError(Exception):
    """In-guest operation failed."""


class EsxcliError(subprocess.CalledProcessError, Exception):
    """Esxcli error."""
