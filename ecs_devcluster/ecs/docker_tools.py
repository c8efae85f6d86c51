# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Docker style values (durations, health check command) transformation to their ECS equivalent.
"""

import re

from ecs_devcluster.common.logging import LOG


def import_time_values_to_seconds(time_string, as_tuple=False):
    """
    Function to parse strings with h/m/s

    :param str time_string:
    :param bool as_tuple: Whether or not return a tuple (hours, minutes, seconds)
    :return: The number of seconds or tuple of time breakdown as ints
    :rtype: int, tuple(int, int, int)
    """
    if isinstance(time_string, int) and not isinstance(time_string, bool):
        return (0, 0, time_string) if as_tuple else time_string
    time_re = re.compile(r"^(?P<hours>\d+h)?(?P<minutes>\d+m)?(?P<seconds>\d+s)?$")
    parts = time_re.match(str(time_string))
    if not parts or not any(parts.groups()):
        raise ValueError(
            "The time provided",
            time_string,
            "Does not match the expected pattern",
            time_re.pattern,
        )
    hours, minutes, seconds = (
        int(re.sub(r"[^\d]", "", part)) if part else 0 for part in parts.groups()
    )
    if as_tuple:
        return hours, minutes, seconds
    return seconds + (60 * minutes) + (60 * 60 * hours)


def define_healthcheck_command(command) -> list:
    """
    Returns the ECS health check command. A string is run through the shell and
    fails with exit code 1, as docker expects.

    :param str|list command:
    :rtype: list
    """
    if isinstance(command, list):
        if not command or command[0] not in ["CMD", "CMD-SHELL", "NONE"]:
            raise ValueError(
                "A list health check command must start with CMD, CMD-SHELL or NONE. Got",
                command,
            )
        return command
    if not isinstance(command, str):
        raise TypeError("Health check command must be a string or list. Got", type(command))
    if not command.endswith("|| exit 1"):
        command = f"{command} || exit 1"
    LOG.debug(f"Health check command set to {command}")
    return ["CMD-SHELL", command]
