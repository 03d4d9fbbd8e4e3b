"""
Metrics pipeline: orders table stream -> Lambda -> customer metrics cache.

Also provisions the backfill Lambda that rebuilds the whole cache, run on a
schedule and on demand.
"""

from aws_cdk import (
    Duration,
    aws_dynamodb as dynamodb,
    aws_events as events,
    aws_events_targets as targets,
    aws_lambda as _lambda,
    aws_lambda_event_sources as event_sources,
    aws_logs as logs,
)
from constructs import Construct


class MetricsPipelineConstruct(Construct):
    """Wire order changes to the metrics updater Lambda."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        lambda_code: _lambda.Code,
        shared_env: dict,
        orders_table: dynamodb.ITable,
        cache_table: dynamodb.ITable,
        batch_size: int = 100,
        max_batching_window_seconds: int = 5,
        retry_attempts: int = 2,
        backfill_timeout_seconds: int = 300,
        backfill_schedule_hours: int = 24,
    ) -> None:
        super().__init__(scope, construct_id)

        common_lambda_kwargs = dict(
            runtime=_lambda.Runtime.PYTHON_3_12,
            code=lambda_code,
            architecture=_lambda.Architecture.X86_64,
            log_retention=logs.RetentionDays.ONE_WEEK,
            environment=shared_env,
        )

        self.update_fn = _lambda.Function(
            self,
            "UpdateCustomerMetrics",
            handler="handlers.update_customer_metrics.lambda_handler",
            memory_size=256,
            timeout=Duration.seconds(60),
            **common_lambda_kwargs,
        )

        # The handler swallows per-record errors, so retries only cover
        # invocation-level failures (timeouts, throttles).
        self.update_fn.add_event_source(
            event_sources.DynamoEventSource(
                orders_table,
                starting_position=_lambda.StartingPosition.LATEST,
                batch_size=batch_size,
                max_batching_window=Duration.seconds(max_batching_window_seconds),
                retry_attempts=retry_attempts,
                bisect_batch_on_error=True,
            )
        )

        self.backfill_fn = _lambda.Function(
            self,
            "BackfillCustomerMetrics",
            handler="handlers.backfill_metrics.lambda_handler",
            memory_size=1024,
            timeout=Duration.seconds(backfill_timeout_seconds),
            **common_lambda_kwargs,
        )

        # Customers with no recent orders get no stream events; the periodic
        # rebuild renews their records before the cache TTL removes them.
        self.backfill_rule = None
        if backfill_schedule_hours > 0:
            self.backfill_rule = events.Rule(
                self,
                "ScheduledBackfillRule",
                schedule=events.Schedule.rate(Duration.hours(backfill_schedule_hours)),
                targets=[targets.LambdaFunction(self.backfill_fn)],
            )

        orders_table.grant_read_data(self.update_fn)
        orders_table.grant_read_data(self.backfill_fn)
        cache_table.grant_write_data(self.update_fn)
        cache_table.grant_write_data(self.backfill_fn)
