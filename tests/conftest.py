"""Shared fixtures for addon-inventory tests.

Three kinds of EKS client are used:

- ``botocore.stub.Stubber`` on a real client, where the exact call
  sequence matters (pagination, single detail calls)
- moto's ``mock_aws`` for cluster enumeration against a realistic backend
- ``fakes.FakeEksClient`` for pipeline tests, where calls arrive from
  several worker threads and cannot be queued in a fixed order
"""

import json
import os
from typing import Dict

import boto3
import pytest
from botocore.stub import Stubber
from fakes import FakeClients, FakeEksClient

from addon_inventory.config import InventoryConfig, reset_config
from addon_inventory.regions import RegionMatrix


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch):
    """Reset global config and drop any ADDON_INVENTORY_* overrides."""
    for key in list(os.environ):
        if key.startswith("ADDON_INVENTORY_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Dummy credentials so boto3 never reaches real AWS."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-west-2")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def aws_region():
    return "us-west-2"


# -----------------------------------------------------------------------
# Stubbed real client
# -----------------------------------------------------------------------


@pytest.fixture
def eks_client(aws_region):
    return boto3.client("eks", region_name=aws_region)


@pytest.fixture
def eks_stubber(eks_client):
    with Stubber(eks_client) as stubber:
        yield stubber


# -----------------------------------------------------------------------
# Pipeline over fake clients
# -----------------------------------------------------------------------


@pytest.fixture
def make_pipeline():
    """Build an ``InventoryPipeline`` over fake clients."""
    from addon_inventory.pipeline import InventoryPipeline

    def _make(clients: Dict[str, FakeEksClient], **config_overrides):
        config_overrides.setdefault("regions", sorted(clients))
        config_overrides.setdefault("max_parallelism", 1)
        config = InventoryConfig(**config_overrides)
        return InventoryPipeline(
            config=config,
            client_factory=FakeClients(clients),
            region_matrix=RegionMatrix(config.regions, available=sorted(clients)),
        )

    return _make


# -----------------------------------------------------------------------
# moto-backed clusters
# -----------------------------------------------------------------------


@pytest.fixture
def mock_aws_env():
    """Activate moto's mock_aws context."""
    from moto import mock_aws

    with mock_aws():
        yield


@pytest.fixture
def eks_clusters(mock_aws_env, aws_region):
    """Create two EKS clusters in moto, with the VPC and role they need."""
    session = boto3.Session(region_name=aws_region)

    ec2 = session.client("ec2")
    vpc_id = ec2.create_vpc(CidrBlock="10.0.0.0/16")["Vpc"]["VpcId"]
    subnet_ids = [
        ec2.create_subnet(
            VpcId=vpc_id, CidrBlock=cidr, AvailabilityZone=f"{aws_region}{az}"
        )["Subnet"]["SubnetId"]
        for cidr, az in (("10.0.1.0/24", "a"), ("10.0.2.0/24", "b"))
    ]

    iam = session.client("iam")
    role_arn = iam.create_role(
        RoleName="eks-cluster-role-for-test",
        AssumeRolePolicyDocument=json.dumps(
            {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "eks.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    }
                ],
            }
        ),
    )["Role"]["Arn"]

    eks = session.client("eks")
    names = ["platform", "batch"]
    for name in names:
        eks.create_cluster(
            name=name,
            version="1.29",
            roleArn=role_arn,
            resourcesVpcConfig={"subnetIds": subnet_ids},
        )

    return {"client": eks, "cluster_names": names}
