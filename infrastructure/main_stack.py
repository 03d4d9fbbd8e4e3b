"""
Main CDK Stack for the order metrics back-office.
"""

from aws_cdk import (
    BundlingOptions,
    Stack,
    Tags,
    CfnOutput,
    aws_lambda as _lambda,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct
from infrastructure.constructs.metrics_pipeline import MetricsPipelineConstruct
from infrastructure.config.settings import Settings


class OrderMetricsStack(Stack):
    """Main stack wiring all constructs together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Global tags for cost/accounting.
        Tags.of(self).add("Project", "order-metrics")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Data layer.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
            orders_table_name=settings.orders_table_name,
            cache_table_name=settings.cache_table_name,
            customer_index_name=settings.customer_index_name,
        )

        # Bundle Lambda code with dependencies using Docker (works in CI/CD).
        lambda_code = _lambda.Code.from_asset(
            "src",
            bundling=BundlingOptions(
                image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                command=[
                    "bash", "-c",
                    "pip install -r requirements-lambda.txt -t /asset-output && "
                    "cp -r . /asset-output"
                ],
            ),
        )

        shared_env = {
            "ENVIRONMENT": settings.environment,
            "ORDERS_TABLE_NAME": data_construct.orders_table.table_name,
            "CACHE_TABLE_NAME": data_construct.cache_table.table_name,
            "ORDERS_CUSTOMER_INDEX": settings.customer_index_name,
            "METRICS_TTL_DAYS": str(settings.metrics_ttl_days),
        }

        # 2) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            lambda_code=lambda_code,
            shared_env=shared_env,
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # 3) Stream-driven metrics cache + backfill.
        pipeline_construct = MetricsPipelineConstruct(
            self,
            "MetricsPipeline",
            lambda_code=lambda_code,
            shared_env=shared_env,
            orders_table=data_construct.orders_table,
            cache_table=data_construct.cache_table,
            batch_size=settings.stream_batch_size,
            max_batching_window_seconds=settings.stream_max_batching_window_seconds,
            retry_attempts=settings.stream_retry_attempts,
            backfill_timeout_seconds=settings.backfill_timeout_seconds,
            backfill_schedule_hours=settings.backfill_schedule_hours,
        )

        # Permissions for the API Lambda (read path may populate the cache on a miss).
        data_construct.orders_table.grant_read_data(api_construct.main_lambda)
        data_construct.cache_table.grant_read_write_data(api_construct.main_lambda)

        # Outputs to quickly find resources.
        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "OrdersTable", value=data_construct.orders_table.table_name)
        CfnOutput(self, "MetricsCacheTable", value=data_construct.cache_table.table_name)
        CfnOutput(
            self,
            "BackfillFunctionName",
            value=pipeline_construct.backfill_fn.function_name,
        )
