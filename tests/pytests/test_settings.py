#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import pytest
import yaml
from jsonschema import ValidationError

from ecs_devcluster.common.settings import (
    DEFAULT_CONFIG,
    DevClusterSettings,
    load_config_file,
    merge_config,
)


def base_args(command=DevClusterSettings.render_arg, **kwargs):
    return {
        DevClusterSettings.name_arg: "test",
        DevClusterSettings.command_arg: command,
        **kwargs,
    }


@pytest.fixture
def config_file(tmp_path):
    config_path = tmp_path / "devcluster.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "Network": {
                    "VpcId": "vpc-0123abcd",
                    "SubnetIds": ["subnet-0123abcd", "subnet-4567efab"],
                },
                "Compute": {"InstanceType": "t3.micro"},
                "Service": {"HealthCheck": {"Retries": 5}},
            }
        )
    )
    return str(config_path)


def test_defaults():
    settings = DevClusterSettings(**base_args())
    assert settings.cluster_base_name == "dev-cluster"
    assert settings.compute["MinCapacity"] == 1
    assert settings.compute["MaxCapacity"] == 2
    assert settings.compute["DesiredCapacity"] == 1
    assert settings.service["Memory"] == 256
    assert settings.service["MemoryReservation"] == 256
    assert settings.service["MinimumHealthyPercent"] == 0
    assert settings.service["MaximumPercent"] == 100
    assert settings.cluster_name is None
    assert settings.vpc_id is None
    assert settings.subnet_ids == []
    assert settings.format == "json"
    assert settings.no_upload is True


def test_config_file_merged(config_file):
    settings = DevClusterSettings(
        **base_args(**{DevClusterSettings.input_file_arg: config_file})
    )
    assert settings.vpc_id == "vpc-0123abcd"
    assert settings.subnet_ids == ["subnet-0123abcd", "subnet-4567efab"]
    assert settings.compute["InstanceType"] == "t3.micro"
    assert settings.compute["MaxCapacity"] == 2
    assert settings.service["HealthCheck"]["Retries"] == 5
    assert settings.service["HealthCheck"]["Interval"] == "30s"


def test_cli_values_override_config(config_file):
    settings = DevClusterSettings(
        **base_args(
            **{
                DevClusterSettings.input_file_arg: config_file,
                DevClusterSettings.vpc_id_arg: "vpc-9999ffff",
                DevClusterSettings.subnets_arg: ["subnet-9999ffff"],
                DevClusterSettings.image_arg: "nginx:alpine",
            }
        )
    )
    assert settings.vpc_id == "vpc-9999ffff"
    assert settings.subnet_ids == ["subnet-9999ffff"]
    assert settings.image_uri == "nginx:alpine"


def test_invalid_config():
    with pytest.raises(ValidationError):
        DevClusterSettings(content={"Compute": {"MinCapacity": 0}}, **base_args())
    with pytest.raises(ValidationError):
        DevClusterSettings(content={"Unknown": True}, **base_args())
    with pytest.raises(ValidationError):
        DevClusterSettings(
            content={"Service": {"HealthCheck": {"Interval": "thirty"}}},
            **base_args(),
        )


def test_invalid_config_file(tmp_path):
    config_path = tmp_path / "list.yaml"
    config_path.write_text("- a\n- b\n")
    with pytest.raises(TypeError):
        load_config_file(str(config_path))
    empty_path = tmp_path / "empty.yaml"
    empty_path.write_text("")
    assert load_config_file(str(empty_path)) == {}


def test_invalid_command():
    with pytest.raises(ValueError):
        DevClusterSettings(**base_args(command="apply"))


@pytest.mark.parametrize(
    "command, deploy, plan, destroy, build, upload",
    [
        (DevClusterSettings.render_arg, False, False, False, False, False),
        (DevClusterSettings.create_arg, False, False, False, False, True),
        (DevClusterSettings.plan_arg, False, True, False, False, True),
        (DevClusterSettings.deploy_arg, True, False, False, True, True),
        (DevClusterSettings.destroy_arg, False, False, True, False, False),
        (DevClusterSettings.build_arg, False, False, False, True, False),
    ],
)
def test_commands(command, deploy, plan, destroy, build, upload):
    settings = DevClusterSettings(**base_args(command=command))
    assert settings.deploy is deploy
    assert settings.plan is plan
    assert settings.destroy is destroy
    assert settings.build is build
    assert settings.upload is upload
    assert settings.no_upload is not upload


def test_up_with_image_does_not_build():
    settings = DevClusterSettings(
        **base_args(
            command=DevClusterSettings.deploy_arg,
            **{DevClusterSettings.image_arg: "nginx:alpine"},
        )
    )
    assert settings.deploy is True
    assert settings.build is False


def test_up_with_configured_image_does_not_build():
    settings = DevClusterSettings(
        content={"Image": {"Uri": "public.ecr.aws/nginx/nginx:1.23-alpine"}},
        **base_args(command=DevClusterSettings.deploy_arg),
    )
    assert settings.image_uri == "public.ecr.aws/nginx/nginx:1.23-alpine"
    assert settings.deploy is True
    assert settings.build is False


def test_service_port_is_not_configurable():
    with pytest.raises(ValidationError):
        DevClusterSettings(content={"Service": {"ContainerPort": 8080}}, **base_args())
    assert "ContainerPort" not in DEFAULT_CONFIG["Service"]


def test_stack_lookup_commands():
    assert not DevClusterSettings(**base_args()).requires_stack_lookup
    for command in ["create", "plan", "up", "down"]:
        assert DevClusterSettings(**base_args(command=command)).requires_stack_lookup


def test_bucket_name_from_account(placebo_session):
    settings = DevClusterSettings(
        session=placebo_session("account_id"),
        **base_args(command=DevClusterSettings.create_arg),
    )
    settings.set_bucket_name_from_account_id()
    assert settings.bucket_name == "ecs-devcluster-012345678912-eu-west-1"


def test_bucket_name_given():
    settings = DevClusterSettings(
        **base_args(
            command=DevClusterSettings.create_arg,
            **{DevClusterSettings.bucket_arg: "my-bucket"},
        )
    )
    settings.set_bucket_name_from_account_id()
    assert settings.bucket_name == "my-bucket"


def test_output_format():
    settings = DevClusterSettings(
        **base_args(**{DevClusterSettings.format_arg: "yaml"})
    )
    assert settings.format == "yaml"
    settings = DevClusterSettings(**base_args(**{DevClusterSettings.format_arg: "xml"}))
    assert settings.format == "json"


def test_merge_config_does_not_alter_defaults():
    merged = merge_config(DEFAULT_CONFIG, {"Compute": {"MaxCapacity": 5}})
    assert merged["Compute"]["MaxCapacity"] == 5
    assert merged["Compute"]["MinCapacity"] == 1
    assert DEFAULT_CONFIG["Compute"]["MaxCapacity"] == 2


def test_render_config():
    rendered = yaml.safe_load(DevClusterSettings(**base_args()).render_config())
    assert rendered == DEFAULT_CONFIG
