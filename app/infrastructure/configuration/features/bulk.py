"""Bulk operation feature settings."""

from pydantic import Field

from infrastructure.configuration.base import FeatureSettings


class BulkSettings(FeatureSettings):
    """Limits applied to bulk create/update/cancel/retry requests.

    Environment Variables:
        BULK_DEFAULT_BATCH_SIZE: Items per batch when none is requested
        BULK_MAX_PARALLELISM: Batches allowed in flight at once
        BULK_MAX_CREATE_BATCH_SIZE: Cap on requested batch size for creates
        BULK_MAX_UPDATE_BATCH_SIZE: Cap on requested batch size for updates
    """

    default_batch_size: int = Field(default=100, alias="BULK_DEFAULT_BATCH_SIZE")
    max_parallelism: int = Field(default=5, alias="BULK_MAX_PARALLELISM")
    max_create_batch_size: int = Field(default=500, alias="BULK_MAX_CREATE_BATCH_SIZE")
    max_update_batch_size: int = Field(default=200, alias="BULK_MAX_UPDATE_BATCH_SIZE")
