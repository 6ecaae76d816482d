# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: MIT
"""Various utilities."""
import logging
from fnmatch import fnmatchcase
from ipaddress import IPv4Network, ip_network
from typing import Callable, Iterable, List, Optional, TypeVar

from mfd_common_libs import log_levels, add_logging_level
from .exceptions import OperationCancelled, VSphereMatchError, VSphereWrongParameter

logger = logging.getLogger(__name__)
add_logging_level(level_name="MODULE_DEBUG", level_value=log_levels.MODULE_DEBUG)

T = TypeVar("T")


def netmask_to_prefix(netmask: str) -> int:
    """
    Convert dotted IPv4 netmask to prefix length.

    :param netmask: Netmask e.g. 255.255.255.0, prefix given as string is accepted too.

    :return: Prefix length.
    :raise VSphereWrongParameter: Not a contiguous netmask.
    """
    if str(netmask).isdigit():
        prefix = int(netmask)
        if 0 <= prefix <= 32:
            return prefix
        raise VSphereWrongParameter(f"Invalid prefix length: {netmask}")
    try:
        return ip_network(f"0.0.0.0/{netmask}").prefixlen
    except ValueError:
        raise VSphereWrongParameter(f"Invalid netmask: {netmask}")


def prefix_to_netmask(prefix: int) -> str:
    """
    Convert prefix length to dotted IPv4 netmask.

    :param prefix: Prefix length.

    :return: Netmask.
    """
    try:
        return str(IPv4Network(f"0.0.0.0/{int(prefix)}").netmask)
    except ValueError:
        raise VSphereWrongParameter(f"Invalid prefix length: {prefix}")


def filter_by_wildcard(iter_obj: Iterable[T], pattern: str) -> List[T]:
    """
    Get objects with name matching shell-style pattern.

    :param iter_obj: Iterable of objects with name attribute.
    :param pattern: Pattern with * and ? wildcards.

    :return: Matching objects.
    """
    return [obj for obj in iter_obj if fnmatchcase(obj.name, pattern)]


def resolve_single(iter_obj: Iterable[T], pattern: str, kind: str = "object") -> T:
    """
    Get the only object matching pattern.

    :param iter_obj: Iterable of objects with name attribute.
    :param pattern: Pattern with * and ? wildcards.
    :param kind: Kind of object, used in messages.

    :return: Matched object.
    :raise VSphereMatchError: Zero or more than one object matched.
    """
    matches = filter_by_wildcard(iter_obj, pattern)
    if not matches:
        raise VSphereMatchError(f"No {kind} matches '{pattern}'")
    if len(matches) > 1:
        names = ", ".join(obj.name for obj in matches)
        raise VSphereMatchError(f"{len(matches)} {kind}s match '{pattern}': {names}")
    logger.log(level=log_levels.MODULE_DEBUG, msg=f"Pattern '{pattern}' resolved to {kind} {matches[0].name}")
    return matches[0]


def require_confirmation(message: str, confirm: Optional[Callable[[str], bool]]) -> None:
    """
    Ask for confirmation when callback is provided.

    :param message: Question for the operator.
    :param confirm: Callback returning True to proceed, None skips the question.

    :raise OperationCancelled: Callback declined.
    """
    if confirm is None:
        return
    if not confirm(message):
        raise OperationCancelled(message)
