#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import pytest
from troposphere import Template

from ecs_devcluster.common import aws
from ecs_devcluster.common.aws import (
    assert_can_create_stack,
    assert_can_update_stack,
    deploy,
    destroy,
    get_stack_parameter,
    plan,
)
from ecs_devcluster.common.settings import DevClusterSettings
from ecs_devcluster.common.stacks import DevClusterStack
from ecs_devcluster.exceptions import InvalidSettings

TEMPLATE_URL = "https://s3.amazonaws.com/test-bucket/2022/09/21/1200/abcdef/test.json"


def get_settings(session, command=DevClusterSettings.deploy_arg):
    return DevClusterSettings(
        session=session,
        **{
            DevClusterSettings.name_arg: "test",
            DevClusterSettings.command_arg: command,
            DevClusterSettings.bucket_arg: "test-bucket",
            DevClusterSettings.image_arg: "nginx:alpine",
        },
    )


@pytest.fixture
def root_stack():
    stack = DevClusterStack(
        "test",
        stack_template=Template(),
        stack_parameters={
            "EcsClusterName": "dev-cluster-k3x9a2",
            "AppSubnets": ["subnet-0123abcd", "subnet-4567efab"],
        },
    )
    setattr(stack, "TemplateURL", TEMPLATE_URL)
    return stack


def test_parameters_list(root_stack):
    assert root_stack.render_parameters_list_cfn() == [
        {"ParameterKey": "EcsClusterName", "ParameterValue": "dev-cluster-k3x9a2"},
        {
            "ParameterKey": "AppSubnets",
            "ParameterValue": "subnet-0123abcd,subnet-4567efab",
        },
    ]


def test_create_stack(placebo_session, root_stack):
    settings = get_settings(placebo_session("cfn_create"))
    stack_id = deploy(settings, root_stack)
    assert stack_id.startswith("arn:aws:cloudformation:eu-west-1:012345678912:stack/test/")


def test_update_stack(placebo_session, root_stack):
    settings = get_settings(placebo_session("cfn_update"))
    stack_id = deploy(settings, root_stack)
    assert stack_id.endswith("3f9d0f40-3b1a-11ed-a8f4-0a1b2c3d4e5f")


def test_cannot_update_stack(placebo_session, root_stack):
    session = placebo_session("cfn_cannot_update")
    client = session.client("cloudformation")
    assert assert_can_create_stack(client, "test") is False
    assert assert_can_update_stack(client, "test") is False
    assert deploy(get_settings(session), root_stack) is None


def test_deploy_requires_upload(placebo_session, root_stack):
    settings = get_settings(placebo_session("cfn_create"))
    settings.upload = False
    with pytest.raises(InvalidSettings):
        deploy(settings, root_stack)
    settings.upload = True
    setattr(root_stack, "TemplateURL", "/tmp/test.json")
    with pytest.raises(ValueError):
        deploy(settings, root_stack)


def test_stack_parameter(placebo_session):
    session = placebo_session("existing_stack")
    assert get_stack_parameter(session, "test", "EcsClusterName") == "dev-cluster-k3x9a2"
    assert get_stack_parameter(session, "test", "NotAParameter") is None
    assert (
        get_stack_parameter(placebo_session("missing_stack"), "test", "EcsClusterName")
        is None
    )


def test_destroy(placebo_session):
    assert destroy(get_settings(placebo_session("cfn_delete"), "down")) is True
    assert destroy(get_settings(placebo_session("missing_stack"), "down")) is False


def test_plan_and_apply(placebo_session, root_stack, monkeypatch):
    answers = iter(["y"])
    monkeypatch.setattr("builtins.input", lambda _: next(answers))
    monkeypatch.setattr(aws, "sleep", lambda _: None)
    settings = get_settings(placebo_session("plan_create"), DevClusterSettings.plan_arg)
    plan(settings, root_stack)


def test_plan_and_cleanup(placebo_session, root_stack, monkeypatch, capsys):
    answers = iter(["n", "y"])
    monkeypatch.setattr("builtins.input", lambda _: next(answers))
    settings = get_settings(placebo_session("plan_create"), DevClusterSettings.plan_arg)
    plan(settings, root_stack)
    assert "EcsServiceDefinition" in capsys.readouterr().out
