#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
from os import path

import boto3
import placebo
from behave import given, then
from cfn_flip import load_yaml
from pytest import raises

from ecs_devcluster.common.aws import deploy, destroy
from ecs_devcluster.common.settings import DevClusterSettings
from ecs_devcluster.devcluster import generate_full_template


def here():
    return path.abspath(path.dirname(__file__))


def get_settings(context, command=DevClusterSettings.render_arg, **kwargs):
    args = {
        DevClusterSettings.name_arg: "test",
        DevClusterSettings.command_arg: command,
        DevClusterSettings.output_dir_arg: context.output_dir.name,
    }
    if hasattr(context, "config_file"):
        args[DevClusterSettings.input_file_arg] = context.config_file
    args.update(getattr(context, "extra_args", {}))
    args.update(kwargs)
    return DevClusterSettings(session=getattr(context, "session", None), **args)


@given("I use {file_path} as my configuration file")
def step_impl(context, file_path):
    """
    Function to use one of the configuration files from use-cases.

    :param context:
    :param str file_path:
    """
    context.config_file = path.abspath(f"{here()}/../../../{file_path}")
    context.extra_args = {}


@given("I replay AWS calls from {case_name}")
def step_impl(context, case_name):
    context.session = boto3.session.Session(region_name="eu-west-1")
    pill = placebo.attach(
        context.session,
        data_path=path.abspath(f"{here()}/../../pytests/placebo/{case_name}"),
    )
    pill.playback()


@given("I set the network to {vpc_id} with subnets {subnets}")
def step_impl(context, vpc_id, subnets):
    context.extra_args = getattr(context, "extra_args", {})
    context.extra_args.update(
        {
            DevClusterSettings.vpc_id_arg: vpc_id,
            DevClusterSettings.subnets_arg: subnets.split(","),
        }
    )


@given("I use {image_uri} as the service image")
def step_impl(context, image_uri):
    context.extra_args[DevClusterSettings.image_arg] = image_uri


@then("I render the template in {file_format}")
def step_impl(context, file_format):
    context.settings = get_settings(
        context, **{DevClusterSettings.format_arg: file_format}
    )
    context.root_stack = generate_full_template(context.settings)
    template_file = context.root_stack.render(context.settings)
    with open(template_file.file_path) as template_fd:
        if file_format == "yaml":
            context.template_body = load_yaml(template_fd.read())
        else:
            context.template_body = json.loads(template_fd.read())


@then("rendering the template fails with {error_name}")
def step_impl(context, error_name):
    errors = {"ValueError": ValueError, "TypeError": TypeError}
    context.settings = get_settings(context)
    with raises(errors[error_name]):
        generate_full_template(context.settings)


@then("the template has the {resource_type} resource {resource_name}")
def step_impl(context, resource_type, resource_name):
    resources = context.template_body["Resources"]
    assert resource_name in resources
    assert resources[resource_name]["Type"] == resource_type


@then("the cluster name starts with {base_name}")
def step_impl(context, base_name):
    cluster_name = context.root_stack.Parameters["EcsClusterName"]
    assert cluster_name.startswith(f"{base_name}-")
    assert len(cluster_name) == len(base_name) + 7


@then("the stack has no VpcId parameter")
def step_impl(context):
    assert "VpcId" not in context.root_stack.Parameters


@then("I deploy the stack")
def step_impl(context):
    context.settings = get_settings(
        context,
        command=DevClusterSettings.deploy_arg,
        **{DevClusterSettings.bucket_arg: "test-bucket"},
    )
    context.root_stack = generate_full_template(context.settings)
    setattr(
        context.root_stack,
        "TemplateURL",
        "https://s3.amazonaws.com/test-bucket/test.json",
    )
    context.stack_id = deploy(context.settings, context.root_stack)


@then("the stack is created")
def step_impl(context):
    assert context.stack_id.startswith("arn:aws:cloudformation:eu-west-1")


@then("I delete the stack")
def step_impl(context):
    context.settings = get_settings(context, command=DevClusterSettings.destroy_arg)
    context.deleted = destroy(context.settings)


@then("the stack deletion is requested")
def step_impl(context):
    assert context.deleted is True
