"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the platform.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # DynamoDB Tables
    PROFILES_TABLE = os.environ.get('PROFILES_TABLE', '')
    WORKER_DOCUMENTS_TABLE = os.environ.get('WORKER_DOCUMENTS_TABLE', '')
    WORKER_INTERVIEWS_TABLE = os.environ.get('WORKER_INTERVIEWS_TABLE', '')
    WORKER_STATUS_LOGS_TABLE = os.environ.get('WORKER_STATUS_LOGS_TABLE', '')
    WORKER_BANK_DETAILS_TABLE = os.environ.get('WORKER_BANK_DETAILS_TABLE', '')
    TASKS_TABLE = os.environ.get('TASKS_TABLE', '')
    TASK_SUBMISSIONS_TABLE = os.environ.get('TASK_SUBMISSIONS_TABLE', '')
    TASK_PAYMENT_RECORDS_TABLE = os.environ.get('TASK_PAYMENT_RECORDS_TABLE', '')
    TRANSACTION_PROOFS_TABLE = os.environ.get('TRANSACTION_PROOFS_TABLE', '')
    WALLET_BALANCES_TABLE = os.environ.get('WALLET_BALANCES_TABLE', '')
    PAYMENT_TRANSACTIONS_TABLE = os.environ.get('PAYMENT_TRANSACTIONS_TABLE', '')
    SUBCATEGORIES_TABLE = os.environ.get('SUBCATEGORIES_TABLE', '')

    # SQS Queues
    CHANGE_NOTIFICATIONS_QUEUE_URL = os.environ.get('CHANGE_NOTIFICATIONS_QUEUE_URL', '')

    # S3 Buckets
    WORKER_DOCUMENTS_BUCKET = os.environ.get('WORKER_DOCUMENTS_BUCKET', '')
    EMPLOYER_DOCUMENTS_BUCKET = os.environ.get('EMPLOYER_DOCUMENTS_BUCKET', '')
    TRANSACTION_PROOFS_BUCKET = os.environ.get('TRANSACTION_PROOFS_BUCKET', '')
    PRESIGNED_URL_EXPIRATION = int(os.environ.get('PRESIGNED_URL_EXPIRATION', '3600'))

    # Taxonomy cache lifetime in seconds
    TAXONOMY_CACHE_SECONDS = int(os.environ.get('TAXONOMY_CACHE_SECONDS', '300'))

    # Submission proof limits
    MAX_SUBMISSION_FILES = int(os.environ.get('MAX_SUBMISSION_FILES', '5'))
    MIN_PROOF_TEXT_LENGTH = int(os.environ.get('MIN_PROOF_TEXT_LENGTH', '10'))


config = Config()
