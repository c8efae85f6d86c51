# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to create the compute resources: the hosts launch template, security groups and IAM profile,
and the Auto Scaling Group with its scaling policy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from ecs_devcluster.common.logging import LOG
from ecs_devcluster.compute.compute_template import (
    add_autoscaling_group,
    add_memory_reservation_scaling,
)
from ecs_devcluster.compute.hosts_template import add_hosts_resources


def add_compute_resources(template, settings: DevClusterSettings):
    """
    Function entrypoint to add the hosts and the Auto Scaling Group to the template.

    :param troposphere.Template template:
    :param ecs_devcluster.common.settings.DevClusterSettings settings: The settings for execution
    :return: the Auto Scaling Group
    :rtype: troposphere.autoscaling.AutoScalingGroup
    """
    compute = settings.compute
    launch_template = add_hosts_resources(template, compute)
    asg = add_autoscaling_group(
        template,
        launch_template,
        min_capacity=compute["MinCapacity"],
        max_capacity=compute["MaxCapacity"],
        desired_capacity=compute["DesiredCapacity"],
    )
    add_memory_reservation_scaling(
        template, asg, target=compute["MemoryReservationTarget"]
    )
    LOG.info(
        f"Hosts {compute['InstanceType']} between {compute['MinCapacity']} and {compute['MaxCapacity']}"
    )
    return asg
