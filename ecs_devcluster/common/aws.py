# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Common functions and variables fetched from AWS, and the CloudFormation stack operations.
"""

from __future__ import annotations

import secrets
from string import ascii_lowercase
from time import sleep
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings
    from ecs_devcluster.common.stacks import DevClusterStack

from botocore.exceptions import ClientError
from compose_x_common.aws import get_assume_role_session
from compose_x_common.compose_x_common import keyisset
from tabulate import tabulate

from ecs_devcluster.common.logging import LOG
from ecs_devcluster.exceptions import InvalidSettings

CAPABILITIES = ["CAPABILITY_IAM"]
YES_ANSWERS = ["y", "Y", "YES", "Yes", "yes"]


def get_cross_role_session(session, arn, region_name=None, session_name=None):
    """
    Function to override DevClusterSettings session to a session assuming the given IAM role

    :param boto3.session.Session session: The original session fetching the credentials for X-Role
    :param str arn:
    :param str region_name: Name of region for session
    :param str session_name: Override name of the session
    :return: boto3 session from lookup settings
    :rtype: boto3.session.Session
    """
    if not session_name:
        session_name = "DevCluster@Session"
    try:
        return get_assume_role_session(
            session, arn, session_name=session_name, region=region_name
        )
    except ClientError:
        LOG.error(f"Failed to use the Role ARN {arn}")
        raise


def stack_does_not_exist(error: ClientError) -> bool:
    return (
        error.response["Error"]["Code"] == "ValidationError"
        and error.response["Error"]["Message"].find("does not exist") > 0
    )


def get_stack(client, name):
    """
    Returns the stack description, None if the stack does not exist

    :param client: boto3 cloudformation client
    :param str name: stack name
    :rtype: dict
    """
    try:
        stack_r = client.describe_stacks(StackName=name)
    except ClientError as error:
        if stack_does_not_exist(error):
            return None
        LOG.error(error)
        raise
    if not keyisset("Stacks", stack_r):
        return None
    stacks = stack_r["Stacks"]
    if len(stacks) != 1:
        raise LookupError("Too many stacks found with name", name)
    return stacks[0]


def get_stack_parameter(session, stack_name: str, parameter_key: str):
    """
    Retrieves a parameter value of an existing stack.

    :param boto3.session.Session session:
    :param str stack_name:
    :param str parameter_key:
    :return: the parameter value, None if the stack or the parameter does not exist
    :rtype: str
    """
    stack = get_stack(session.client("cloudformation"), stack_name)
    if not stack:
        LOG.debug(f"Stack {stack_name} does not exist")
        return None
    for parameter in stack.get("Parameters", []):
        if parameter["ParameterKey"] == parameter_key:
            return parameter.get("ResolvedValue", parameter["ParameterValue"])
    return None


def assert_can_create_stack(client, name):
    """
    Checks whether a stack already exists or not
    """
    stack = get_stack(client, name)
    if stack is None:
        return True
    if stack["StackStatus"] == "REVIEW_IN_PROGRESS":
        return stack
    return False


def assert_can_update_stack(client, name):
    """
    Checks whether the existing stack is in a status that allows updates
    """
    can_update_statuses = [
        "CREATE_COMPLETE",
        "ROLLBACK_COMPLETE",
        "UPDATE_COMPLETE",
        "UPDATE_ROLLBACK_COMPLETE",
    ]
    stack = get_stack(client, name)
    if not stack:
        return False
    LOG.info(f"Stack {name} status: {stack['StackStatus']}")
    return stack["StackStatus"] in can_update_statuses


def validate_stack_availability(settings: DevClusterSettings, root_stack):
    """
    Function to check that the stack files were uploaded to S3

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param ecs_devcluster.common.stacks.DevClusterStack root_stack:
    """
    if not settings.upload:
        raise InvalidSettings(
            "The templates were not uploaded, which is incompatible with deploying."
        )
    elif not root_stack.TemplateURL or not root_stack.TemplateURL.startswith(
        "https://"
    ):
        raise ValueError(
            f"The URL for the stack is incorrect.: {root_stack.TemplateURL}",
            "TemplateURL must be a s3 URL",
        )


def deploy(settings: DevClusterSettings, root_stack: DevClusterStack):
    """
    Function to deploy (create or update) the stack to CFN.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param ecs_devcluster.common.stacks.DevClusterStack root_stack:
    :return: the stack ID, None if the stack can be neither created nor updated
    :rtype: str
    """
    validate_stack_availability(settings, root_stack)
    client = settings.session.client("cloudformation")
    if assert_can_create_stack(client, settings.name):
        res = client.create_stack(
            StackName=settings.name,
            Capabilities=CAPABILITIES,
            Parameters=root_stack.render_parameters_list_cfn(),
            TemplateURL=root_stack.TemplateURL,
            DisableRollback=settings.disable_rollback,
        )
        LOG.info(f"Stack {settings.name} successfully deployed.")
        LOG.info(res["StackId"])
        return res["StackId"]
    elif assert_can_update_stack(client, settings.name):
        LOG.warning(f"Stack {settings.name} already exists. Updating.")
        try:
            res = client.update_stack(
                StackName=settings.name,
                Capabilities=CAPABILITIES,
                Parameters=root_stack.render_parameters_list_cfn(),
                TemplateURL=root_stack.TemplateURL,
                DisableRollback=settings.disable_rollback,
            )
        except ClientError as error:
            if error.response["Error"]["Message"].startswith("No updates"):
                LOG.info(f"Stack {settings.name} is up to date.")
                return None
            LOG.error(error)
            raise
        LOG.info(f"Stack {settings.name} successfully updating.")
        LOG.info(res["StackId"])
        return res["StackId"]
    LOG.error(f"Stack {settings.name} can be neither created nor updated.")
    return None


def get_change_set_status(client, change_set_name, settings: DevClusterSettings):
    """
    Waits for the change set to be created and prints its changes

    :return: the change set description, None if it contains no changes
    :rtype: dict
    """
    pending_statuses = [
        "CREATE_PENDING",
        "CREATE_IN_PROGRESS",
        "DELETE_PENDING",
        "DELETE_IN_PROGRESS",
        "REVIEW_IN_PROGRESS",
    ]
    success_statuses = ["CREATE_COMPLETE", "DELETE_COMPLETE"]
    failed_statuses = ["DELETE_FAILED", "FAILED"]
    ready = False
    status = None
    while not ready:
        status = client.describe_change_set(
            ChangeSetName=change_set_name, StackName=settings.name
        )
        if status["Status"] in failed_statuses:
            reason = status.get("StatusReason", "")
            if "didn't contain changes" in reason or "No updates" in reason:
                LOG.info(f"Stack {settings.name} is up to date. No changes.")
                return None
            raise SystemExit("Change set is unsuccessful", status["Status"], reason)
        if status["Status"] in pending_statuses:
            print(
                "ChangeSet creation in progress. Waiting 10 seconds",
                end="\r",
                flush=True,
            )
            sleep(10)
        elif status["Status"] in success_statuses:
            ready = True

    print(
        tabulate(
            [
                [
                    change["ResourceChange"]["LogicalResourceId"],
                    change["ResourceChange"]["ResourceType"],
                    change["ResourceChange"]["Action"],
                    change["ResourceChange"].get("Replacement", ""),
                ]
                for change in status["Changes"]
            ],
            ["LogicalResourceId", "ResourceType", "Action", "Replacement"],
            tablefmt="rst",
        )
    )
    return status


def plan(settings: DevClusterSettings, root_stack: DevClusterStack):
    """
    Function to create a change-set, show the diff, and apply it if confirmed.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param ecs_devcluster.common.stacks.DevClusterStack root_stack:
    """
    validate_stack_availability(settings, root_stack)
    client = settings.session.client("cloudformation")
    change_set_name = f"{settings.name}-" + "".join(
        secrets.choice(ascii_lowercase) for _ in range(10)
    )
    if assert_can_create_stack(client, settings.name):
        change_set_type = "CREATE"
    elif assert_can_update_stack(client, settings.name):
        change_set_type = "UPDATE"
    else:
        LOG.error(f"Stack {settings.name} can be neither created nor updated.")
        return
    client.create_change_set(
        StackName=settings.name,
        Capabilities=CAPABILITIES,
        Parameters=root_stack.render_parameters_list_cfn(),
        TemplateURL=root_stack.TemplateURL,
        UsePreviousTemplate=False,
        ChangeSetType=change_set_type,
        ChangeSetName=change_set_name,
    )
    status = get_change_set_status(client, change_set_name, settings)
    if not status:
        return
    apply_q = input("Want to apply? [yN]: ")
    if apply_q in YES_ANSWERS:
        client.execute_change_set(
            ChangeSetName=change_set_name,
            StackName=settings.name,
            DisableRollback=settings.disable_rollback,
        )
        LOG.info(f"Change set {change_set_name} applied to {settings.name}")
        return
    delete_q = input("Cleanup ChangeSet ? [yN]: ")
    if delete_q not in YES_ANSWERS:
        return
    if change_set_type == "CREATE":
        client.delete_stack(StackName=settings.name)
    else:
        client.delete_change_set(
            ChangeSetName=change_set_name, StackName=settings.name
        )


def destroy(settings: DevClusterSettings):
    """
    Deletes the stack, if it exists.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :return: whether a deletion was requested
    :rtype: bool
    """
    client = settings.session.client("cloudformation")
    if not get_stack(client, settings.name):
        LOG.warning(f"Stack {settings.name} does not exist. Nothing to delete.")
        return False
    client.delete_stack(StackName=settings.name)
    LOG.info(f"Stack {settings.name} deletion requested.")
    return True
