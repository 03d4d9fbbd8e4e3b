"""
Data layer construct: orders table (with stream + contactID index) and the
customer metrics cache table.
"""

from aws_cdk import (
    RemovalPolicy,
    aws_dynamodb as dynamodb,
)
from constructs import Construct


class DataLayerConstruct(Construct):
    """Provision DynamoDB tables."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        orders_table_name: str,
        cache_table_name: str,
        customer_index_name: str,
    ) -> None:
        super().__init__(scope, construct_id)

        removal_policy = RemovalPolicy.RETAIN if environment == "prod" else RemovalPolicy.DESTROY

        # Orders: the stream feeds the metrics updater with before/after images.
        self.orders_table = dynamodb.Table(
            self,
            "Orders",
            table_name=orders_table_name,
            partition_key=dynamodb.Attribute(name="orderID", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            stream=dynamodb.StreamViewType.NEW_AND_OLD_IMAGES,
            point_in_time_recovery=environment == "prod",
            removal_policy=removal_policy,
        )
        self.orders_table.add_global_secondary_index(
            index_name=customer_index_name,
            partition_key=dynamodb.Attribute(name="contactID", type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name="createdAt", type=dynamodb.AttributeType.STRING),
            projection_type=dynamodb.ProjectionType.ALL,
        )

        # Metrics cache: one item per customer, expired by DynamoDB TTL.
        self.cache_table = dynamodb.Table(
            self,
            "CustomerMetricsCache",
            table_name=cache_table_name,
            partition_key=dynamodb.Attribute(name="contactID", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.DESTROY,
            time_to_live_attribute="ttl",
        )
