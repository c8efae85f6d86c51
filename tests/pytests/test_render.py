#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
from os import path

import pytest

from ecs_devcluster.common.settings import DevClusterSettings
from ecs_devcluster.devcluster import (
    DEFAULT_SERVICE_IMAGE,
    generate_full_template,
    resolve_service_image,
)
from ecs_devcluster.ecs.ecs_params import SERVICE_PORT


def get_settings(tmp_path, session=None, command=DevClusterSettings.render_arg, **kwargs):
    return DevClusterSettings(
        session=session,
        **{
            DevClusterSettings.name_arg: "test",
            DevClusterSettings.command_arg: command,
            DevClusterSettings.output_dir_arg: str(tmp_path),
            **kwargs,
        },
    )


@pytest.fixture
def network_args():
    return {
        DevClusterSettings.cluster_name_arg: "dev-cluster-abc123",
        DevClusterSettings.vpc_id_arg: "vpc-0123abcd",
        DevClusterSettings.subnets_arg: ["subnet-0123abcd", "subnet-4567efab"],
    }


def test_render_files(tmp_path, network_args):
    settings = get_settings(tmp_path, **network_args)
    root_stack = generate_full_template(settings)
    assert settings.root_stack is root_stack
    root_stack.render(settings)
    for file_name in ["test.json", "test.params.json", "test.config.json"]:
        assert path.exists(path.join(tmp_path, file_name))
    with open(path.join(tmp_path, "test.json")) as template_fd:
        template = json.loads(template_fd.read())
    resources = template["Resources"]
    assert resources["EcsCluster"]["Type"] == "AWS::ECS::Cluster"
    assert resources["EcsServiceDefinition"]["Type"] == "AWS::ECS::Service"
    assert resources["EcsCapacityProvider"]["Type"] == "AWS::ECS::CapacityProvider"
    assert resources["LaunchTemplate"]["Type"] == "AWS::EC2::LaunchTemplate"
    for parameter in ["EcsClusterName", "VpcId", "AppSubnets", "ServiceImage"]:
        assert parameter in template["Parameters"]

    with open(path.join(tmp_path, "test.config.json")) as config_fd:
        config = json.loads(config_fd.read())
    assert config["Parameters"] == {
        "EcsClusterName": "dev-cluster-abc123",
        "ServiceImage": DEFAULT_SERVICE_IMAGE,
        "VpcId": "vpc-0123abcd",
        "AppSubnets": "subnet-0123abcd,subnet-4567efab",
    }


def test_hosts_ingress_matches_service_port(tmp_path, network_args):
    settings = get_settings(tmp_path, **network_args)
    resources = generate_full_template(settings).stack_template.to_dict()["Resources"]
    container = resources["EcsTaskDefinition"]["Properties"]["ContainerDefinitions"][0]
    ingress_ports = [
        (resource["Properties"]["FromPort"], resource["Properties"]["ToPort"])
        for resource in resources.values()
        if resource["Type"] == "AWS::EC2::SecurityGroupIngress"
    ]
    assert ingress_ports == [
        (mapping["HostPort"], mapping["HostPort"])
        for mapping in container["PortMappings"]
    ]
    assert container["PortMappings"][0]["ContainerPort"] == SERVICE_PORT
    assert container["HealthCheck"]["Command"] == [
        "CMD-SHELL",
        "curl --fail http://localhost || exit 1",
    ]


def test_render_yaml(tmp_path, network_args):
    settings = get_settings(
        tmp_path, **network_args, **{DevClusterSettings.format_arg: "yaml"}
    )
    generate_full_template(settings).render(settings)
    assert path.exists(path.join(tmp_path, "test.yaml"))


def test_render_without_network(tmp_path):
    settings = get_settings(tmp_path)
    root_stack = generate_full_template(settings)
    assert "VpcId" not in root_stack.Parameters
    assert root_stack.Parameters["EcsClusterName"].startswith("dev-cluster-")
    assert root_stack.Parameters["ServiceImage"] == DEFAULT_SERVICE_IMAGE


def test_image_given(tmp_path):
    settings = get_settings(
        tmp_path, **{DevClusterSettings.image_arg: "nginx:1.23-alpine"}
    )
    assert resolve_service_image(settings) == "nginx:1.23-alpine"


def test_image_from_existing_stack(tmp_path, placebo_session):
    settings = get_settings(
        tmp_path,
        session=placebo_session("existing_stack"),
        command=DevClusterSettings.create_arg,
    )
    assert resolve_service_image(settings).startswith(
        "012345678912.dkr.ecr.eu-west-1.amazonaws.com/ecs-devcluster/nginx@sha256:"
    )


def test_image_default_for_new_stack(tmp_path, placebo_session):
    settings = get_settings(
        tmp_path,
        session=placebo_session("missing_stack"),
        command=DevClusterSettings.create_arg,
    )
    assert resolve_service_image(settings) == DEFAULT_SERVICE_IMAGE
