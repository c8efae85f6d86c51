# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Auto Scaling Group of the ECS hosts and its memory reservation target tracking policy.
The scaling itself is owned by EC2 Auto Scaling. Only the boundaries and target are declared here.
"""

from troposphere import GetAtt, Output, Ref, Sub
from troposphere.autoscaling import (
    AutoScalingGroup,
    CustomizedMetricSpecification,
    LaunchTemplateSpecification,
    MetricDimension,
    ScalingPolicy,
    Tag,
    TargetTrackingConfiguration,
)

from ecs_devcluster.common import add_outputs
from ecs_devcluster.compute.compute_params import ASG_T, SCALING_POLICY_T
from ecs_devcluster.ecs.ecs_params import CLUSTER_NAME_T
from ecs_devcluster.vpc import vpc_params

MEMORY_RESERVATION_METRIC = "MemoryReservation"
ECS_METRICS_NAMESPACE = "AWS/ECS"
DEFAULT_MEMORY_RESERVATION_TARGET = 80.0


def validate_capacity(min_capacity: int, max_capacity: int, desired_capacity: int):
    """
    Validates the ASG boundaries

    :param int min_capacity:
    :param int max_capacity:
    :param int desired_capacity:
    :raises ValueError: if not 1 <= min <= desired <= max
    """
    for name, value in (
        ("MinCapacity", min_capacity),
        ("MaxCapacity", max_capacity),
        ("DesiredCapacity", desired_capacity),
    ):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{name} must be an integer. Got", type(value))
    if not 1 <= min_capacity <= desired_capacity <= max_capacity:
        raise ValueError(
            "Capacity must satisfy 1 <= MinCapacity <= DesiredCapacity <= MaxCapacity. Got",
            min_capacity,
            desired_capacity,
            max_capacity,
        )


def add_autoscaling_group(
    template,
    launch_template,
    min_capacity: int = 1,
    max_capacity: int = 2,
    desired_capacity: int = 1,
):
    """
    Adds the Auto Scaling Group of the ECS hosts, in the VPC subnets.

    :param troposphere.Template template:
    :param troposphere.ec2.LaunchTemplate launch_template:
    :param int min_capacity:
    :param int max_capacity:
    :param int desired_capacity:
    :rtype: troposphere.autoscaling.AutoScalingGroup
    """
    validate_capacity(min_capacity, max_capacity, desired_capacity)
    asg = AutoScalingGroup(
        ASG_T,
        template=template,
        LaunchTemplate=LaunchTemplateSpecification(
            LaunchTemplateId=Ref(launch_template),
            Version=GetAtt(launch_template, "LatestVersionNumber"),
        ),
        MinSize=str(min_capacity),
        MaxSize=str(max_capacity),
        DesiredCapacity=str(desired_capacity),
        VPCZoneIdentifier=Ref(vpc_params.APP_SUBNETS),
        Tags=[
            Tag("Name", Sub(f"EcsNodes-${{{CLUSTER_NAME_T}}}"), True),
            Tag("AmazonECSManaged", "true", True),
        ],
    )
    add_outputs(template, [Output(ASG_T, Value=Ref(asg))])
    return asg


def add_memory_reservation_scaling(
    template, asg, target: float = DEFAULT_MEMORY_RESERVATION_TARGET
):
    """
    Target tracking policy on the cluster average memory reservation.

    :param troposphere.Template template:
    :param troposphere.autoscaling.AutoScalingGroup asg:
    :param float target: percentage of memory reserved across the hosts to track
    :rtype: troposphere.autoscaling.ScalingPolicy
    """
    if not 0 < target <= 100:
        raise ValueError("MemoryReservationTarget must be in ]0, 100]. Got", target)
    return ScalingPolicy(
        SCALING_POLICY_T,
        template=template,
        AutoScalingGroupName=Ref(asg),
        PolicyType="TargetTrackingScaling",
        TargetTrackingConfiguration=TargetTrackingConfiguration(
            CustomizedMetricSpecification=CustomizedMetricSpecification(
                MetricName=MEMORY_RESERVATION_METRIC,
                Namespace=ECS_METRICS_NAMESPACE,
                Dimensions=[
                    MetricDimension(Name="ClusterName", Value=Ref(CLUSTER_NAME_T))
                ],
                Statistic="Average",
                Unit="Percent",
            ),
            TargetValue=float(target),
        ),
    )
