"""
Configuration module for the uptime monitoring engine.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the engine. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
import uuid
from typing import Any, Optional, Sequence

from uptime_monitor.config.constants import (
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_DATA_DIR,
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_INSTANCE_ID_PREFIX,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_LOGS_DIR,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_ROTATION_INTERVAL,
    DEFAULT_STORE_TYPE,
    DEFAULT_TWILIO_ACCOUNT_SID,
    DEFAULT_TWILIO_AUTH_TOKEN,
    DEFAULT_TWILIO_FROM_PHONE,
    DEFAULT_WORKER_NUMBER,
    STORE_TYPE_FILE,
    STORE_TYPE_POSTGRES,
)
from uptime_monitor.config.monitoring_context import MonitoringContext


def get_context(argv: Optional[Sequence[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    For each option, it first checks for a command-line argument, then falls
    back to an environment variable, and finally uses a default value.

    Args:
        argv: The arguments to parse, sys.argv[1:] when None.

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.
    """
    parser = argparse.ArgumentParser(
        description="Probes the registered checks periodically and alerts their owners on state changes."
    )

    parser.add_argument(
        "-iid",
        "--instance-id",
        type=str,
        default=os.getenv(
            "UPTIME_MONITOR_INSTANCE_ID", f"{DEFAULT_INSTANCE_ID_PREFIX}{uuid.uuid4()}"
        ),
        help="Specifies the identifier of this engine instance.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_INSTANCE_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_INSTANCE_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-st",
        "--store-type",
        type=str.lower,
        choices=[STORE_TYPE_FILE, STORE_TYPE_POSTGRES],
        default=os.getenv("UPTIME_MONITOR_STORE_TYPE", DEFAULT_STORE_TYPE),
        help="Specifies where the checks are stored: 'file' (JSON files) or 'postgres'.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_STORE_TYPE environment variable.\n"
        f"If that is also absent, '{DEFAULT_STORE_TYPE}' is used.",
    )

    parser.add_argument(
        "-dd",
        "--data-dir",
        type=str,
        default=os.getenv("UPTIME_MONITOR_DATA_DIR", DEFAULT_DATA_DIR),
        help="Directory of the JSON record store, used with --store-type file.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_DATA_DIR environment variable.\n"
        f"If that is also absent, '{DEFAULT_DATA_DIR}' is used.",
    )

    parser.add_argument(
        "-ld",
        "--logs-dir",
        type=str,
        default=os.getenv("UPTIME_MONITOR_LOGS_DIR", DEFAULT_LOGS_DIR),
        help="Directory of the per-check audit logs and their archives.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_LOGS_DIR environment variable.\n"
        f"If that is also absent, '{DEFAULT_LOGS_DIR}' is used.",
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=os.getenv("UPTIME_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database, used with --store-type postgres.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_DSN environment variable.\n"
        f"If that is also absent, a default value for a local database is used: {DEFAULT_DSN}",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_DB_POOL_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_DB_POOL_SIZE} is used.",
    )

    parser.add_argument(
        "-wn",
        "--worker-number",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_WORKER_NUMBER", DEFAULT_WORKER_NUMBER)),
        help="Specifies the maximum number of concurrent probes.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_WORKER_NUMBER environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_WORKER_NUMBER} is used.",
    )

    parser.add_argument(
        "-qs",
        "--queue-size",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_QUEUE_SIZE", DEFAULT_QUEUE_SIZE)),
        help="Specifies the maximum number of checks waiting in the processing queue.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_QUEUE_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_QUEUE_SIZE} is used.",
    )

    parser.add_argument(
        "-ci",
        "--check-interval",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL)),
        help="Specifies the delay in seconds between two check cycles.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_CHECK_INTERVAL environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_CHECK_INTERVAL} seconds is used.",
    )

    parser.add_argument(
        "-ri",
        "--rotation-interval",
        type=int,
        default=int(os.getenv("UPTIME_MONITOR_ROTATION_INTERVAL", DEFAULT_ROTATION_INTERVAL)),
        help="Specifies the delay in seconds between two log rotations.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_ROTATION_INTERVAL environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_ROTATION_INTERVAL} seconds is used.",
    )

    parser.add_argument(
        "--twilio-account-sid",
        type=str,
        default=os.getenv("UPTIME_MONITOR_TWILIO_ACCOUNT_SID", DEFAULT_TWILIO_ACCOUNT_SID),
        help="Twilio account SID used to send SMS alerts.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_TWILIO_ACCOUNT_SID environment variable.\n"
        "Alerts are only logged when the Twilio settings are incomplete.",
    )

    parser.add_argument(
        "--twilio-auth-token",
        type=str,
        default=os.getenv("UPTIME_MONITOR_TWILIO_AUTH_TOKEN", DEFAULT_TWILIO_AUTH_TOKEN),
        help="Twilio auth token used to send SMS alerts.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_TWILIO_AUTH_TOKEN environment variable.",
    )

    parser.add_argument(
        "--twilio-from-phone",
        type=str,
        default=os.getenv("UPTIME_MONITOR_TWILIO_FROM_PHONE", DEFAULT_TWILIO_FROM_PHONE),
        help="Twilio phone number SMS alerts are sent from.\n"
        "If not provided, the value is read from the UPTIME_MONITOR_TWILIO_FROM_PHONE environment variable.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=os.getenv("UPTIME_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=os.getenv("UPTIME_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        instance_id=args.instance_id,
        store_type=args.store_type.lower(),
        data_dir=args.data_dir,
        logs_dir=args.logs_dir,
        dsn=args.dsn,
        db_pool_size=args.db_pool_size,
        worker_number=args.worker_number,
        queue_size=args.queue_size,
        check_interval=args.check_interval,
        rotation_interval=args.rotation_interval,
        twilio_account_sid=args.twilio_account_sid,
        twilio_auth_token=args.twilio_auth_token,
        twilio_from_phone=args.twilio_from_phone,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
    )
