"""
Configuration context for the uptime monitoring engine.

This module defines a data structure that holds all configuration parameters
for the engine. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the engine.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        instance_id: Unique identifier for this engine instance.
        store_type: Record store backend, 'file' or 'postgres'.
        data_dir: Directory of the file record store.
        logs_dir: Directory of the per-check audit logs and their archives.
        dsn: Database connection string for PostgreSQL.
        db_pool_size: Maximum number of connections in the database connection pool.
        worker_number: Number of concurrent worker tasks to create.
        queue_size: Maximum size of the processing queue before backpressure is applied.
        check_interval: Delay in seconds between two check cycles.
        rotation_interval: Delay in seconds between two log rotations.
        twilio_account_sid: Twilio account SID, empty to only log alerts.
        twilio_auth_token: Twilio auth token.
        twilio_from_phone: Twilio number alerts are sent from.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
    """

    instance_id: str
    store_type: str
    data_dir: str
    logs_dir: str
    dsn: str
    db_pool_size: int
    worker_number: int
    queue_size: int
    check_interval: int
    rotation_interval: int
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_from_phone: str
    logging_type: str
    logging_config_file: str

    @property
    def sms_enabled(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_phone)
