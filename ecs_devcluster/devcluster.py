# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main module generating the ECS DevCluster template: network, hosts, cluster and the service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from ecs_devcluster.common import add_parameters, init_template
from ecs_devcluster.common.aws import get_stack_parameter
from ecs_devcluster.common.cfn_params import set_parameters_interface
from ecs_devcluster.common.logging import LOG
from ecs_devcluster.common.stacks import DevClusterStack
from ecs_devcluster.compute import add_compute_resources
from ecs_devcluster.ecs.ecs_image import build_and_push_image
from ecs_devcluster.ecs.ecs_params import CLUSTER_NAME_T, SERVICE_IMAGE_T
from ecs_devcluster.ecs.ecs_service import add_service
from ecs_devcluster.ecs.ecs_task import add_task_definition
from ecs_devcluster.ecs_cluster import (
    add_capacity_provider,
    add_ecs_cluster,
    resolve_cluster_identifier,
)
from ecs_devcluster.vpc import define_network_settings
from ecs_devcluster.vpc.vpc_params import APP_SUBNETS, VPC_ID

DEFAULT_SERVICE_IMAGE = "public.ecr.aws/nginx/nginx:alpine"


def resolve_service_image(settings: DevClusterSettings) -> str:
    """
    Defines the image the service runs. Builds it when instructed, otherwise uses the one given,
    then the one of the existing stack.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :return: the image URI
    :rtype: str
    """
    if settings.build:
        return build_and_push_image(settings)
    if settings.image_uri:
        return settings.image_uri
    if settings.requires_stack_lookup:
        settings.image_uri = get_stack_parameter(
            settings.session, settings.name, SERVICE_IMAGE_T
        )
    if not settings.image_uri:
        LOG.warning(
            f"No image built nor given. Using {DEFAULT_SERVICE_IMAGE} as the service image"
        )
        settings.image_uri = DEFAULT_SERVICE_IMAGE
    return settings.image_uri


def define_stack_parameters(settings: DevClusterSettings) -> dict:
    """
    Defines the values of the root stack parameters

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :rtype: dict
    """
    parameters = {
        CLUSTER_NAME_T: resolve_cluster_identifier(settings),
        SERVICE_IMAGE_T: resolve_service_image(settings),
    }
    if settings.no_upload and not settings.vpc_id:
        LOG.info("No VPC set. VpcId and AppSubnets must be provided on deployment")
    else:
        parameters.update(define_network_settings(settings))
    return parameters


def generate_full_template(settings: DevClusterSettings) -> DevClusterStack:
    """
    Function generating the root template with all the resources, from the network down to the service.

    :param ecs_devcluster.common.settings.DevClusterSettings settings: The settings for execution
    :return: the root stack
    :rtype: ecs_devcluster.common.stacks.DevClusterStack
    """
    stack_parameters = define_stack_parameters(settings)
    template = init_template(
        f"ECS DevCluster {settings.name} - EC2 backed ECS Cluster with a single service"
    )
    add_parameters(template, [VPC_ID, APP_SUBNETS])
    asg = add_compute_resources(template, settings)
    provider = add_capacity_provider(template, asg)
    cluster = add_ecs_cluster(template, provider)
    task_definition = add_task_definition(template, settings)
    add_service(template, settings, cluster, provider, task_definition)
    set_parameters_interface(template)
    settings.root_stack = DevClusterStack(
        settings.name, stack_template=template, stack_parameters=stack_parameters
    )
    return settings.root_stack
