"""Constants for s3-website."""

# Tool identity
TOOL_NAME = "s3-website"
CONFIG_FILE_NAME = ".s3-website.json"

# Defaults
DEFAULT_REGION = "us-east-1"
DEFAULT_INDEX_DOCUMENT = "index.html"
DEFAULT_CONCURRENCY = 6
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 0.5
HASH_CHUNK_SIZE = 1024 * 1024

# Components (used in structured logs and metrics labels)
COMPONENT_REMOTE = "remote"
COMPONENT_EXECUTOR = "executor"
COMPONENT_PROVISIONER = "provisioner"
COMPONENT_DEPLOY = "deploy"

# Transfer actions
ACTION_UPLOAD = "upload"
ACTION_DELETE = "delete"

# Error causes
CAUSE_CANCELLED = "cancelled"

# Exit status after Ctrl-C, as a shell reports SIGINT
EXIT_INTERRUPTED = 130

# Provision error reasons
REASON_BUCKET_NAME_TAKEN = "BucketNameTaken"
REASON_INVALID_ROUTING_RULES = "InvalidRoutingRules"
REASON_TRANSITION_FAILED = "TransitionFailed"

# Event reasons
EVENT_REASON_SYNC_STARTED = "SyncStarted"
EVENT_REASON_SYNC_FINISHED = "SyncFinished"
EVENT_REASON_TRANSFER_FAILED = "TransferFailed"
EVENT_REASON_LIST_FAILED = "ListFailed"
EVENT_REASON_STAGE_APPLIED = "StageApplied"
EVENT_REASON_STAGE_VERIFIED = "StageVerified"
EVENT_REASON_STAGE_FAILED = "StageFailed"
EVENT_REASON_DRIFT_DETECTED = "DriftDetected"

# Error codes that mean the request is not authorized; never retried
AUTH_ERROR_CODES = frozenset({
    "AccessDenied",
    "AllAccessDisabled",
    "AccountProblem",
    "ExpiredToken",
    "InvalidAccessKeyId",
    "InvalidClientTokenId",
    "InvalidToken",
    "SignatureDoesNotMatch",
    "UnauthorizedOperation",
    "403",
})

# Error codes that signal throttling or a transient server problem
TRANSIENT_ERROR_CODES = frozenset({
    "InternalError",
    "OperationAborted",
    "RequestTimeout",
    "RequestTimeTooSkewed",
    "RequestLimitExceeded",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "500",
    "502",
    "503",
    "504",
})

# Regions whose website endpoint uses "s3-website-<region>" instead of
# "s3-website.<region>"
LEGACY_WEBSITE_ENDPOINT_REGIONS = frozenset({
    "us-east-1",
    "us-west-1",
    "us-west-2",
    "us-gov-west-1",
    "eu-west-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-northeast-1",
    "sa-east-1",
})

# IAM path required for certificates served by CloudFront
CLOUDFRONT_CERT_PATH = "/cloudfront/"

POLICY_VERSION = "2012-10-17"
