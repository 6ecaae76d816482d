# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT

"""VCenter specific exceptions."""
from typing import Any


class VCenterResourceInUse(Exception):
    """Resource is in use."""

    def __init__(self, resource: Any, message: str):
        """
        Initialize instance.

        :param resource: Resource.
        :param message: Exception message.
        """
        super().__init__(f"{resource}: {message}")


class VCenterResourceMissing(Exception):
    """Resource is missing."""

    def __init__(self, resource: Any):
        """
        Initialize instance.

        :param resource: Name of resource.
        """
        super().__init__(resource)


class VCenterResourceSetupError(Exception):
    """Resource setup failed."""

    def __init__(self, resource: Any):
        """
        Initialize instance.

        :param resource: Name of resource.
        """
        super().__init__(resource)


class VCenterOperationError(Exception):
    """Remote call on resource failed."""

    def __init__(self, resource: Any, action: str, message: str):
        """
        Initialize instance.

        :param resource: Resource.
        :param action: What was attempted.
        :param message: Error text from SDK.
        """
        super().__init__(f"{resource}: unable to {action}: {message}")


class VCenterNotVsanCluster(Exception):
    """Cluster does not have vSAN enabled."""


class VCenterTaskError(Exception):
    """VCenter task ended with error."""


class VCenterInvalidLogin(Exception):
    """Invalid VCenter login used."""


class VCenterSocketError(Exception):
    """VCenter socket error."""
