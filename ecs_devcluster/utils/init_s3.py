# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from botocore.exceptions import ClientError

from ecs_devcluster.common.logging import LOG


def create_bucket(bucket_name, session, no_location=False):
    """
    Function that checks if the S3 bucket exists and if not attempts to create it.

    :param bucket_name: name of the s3 bucket
    :type bucket_name: str
    :param session: boto3 session to use for the API calls
    :type session: boto3.session.Session
    :param no_location: Disable location constraint
    """
    client = session.client("s3")
    params = {
        "ACL": "private",
        "Bucket": bucket_name,
        "CreateBucketConfiguration": {"LocationConstraint": session.region_name},
    }
    if no_location or session.region_name == "us-east-1":
        del params["CreateBucketConfiguration"]
    try:
        client.create_bucket(**params)
        LOG.info(f"Bucket {bucket_name} successfully created.")
    except client.exceptions.BucketAlreadyExists:
        LOG.warning(f"Bucket {bucket_name} already exists.")
    except client.exceptions.BucketAlreadyOwnedByYou:
        LOG.info(f"You already own the bucket {bucket_name}")
    except ClientError as error:
        if error.response["Error"]["Code"] == "InvalidLocationConstraint":
            create_bucket(bucket_name, session, True)
        else:
            LOG.error("Error whilst creating the bucket")
            LOG.error(error)
            raise
